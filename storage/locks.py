"""
Named advisory locks, one per logical storage domain.

Writers to the same domain serialize; writers to different domains never
block each other. Reads take no lock.

On PostgreSQL the lock is ``pg_advisory_xact_lock``: it belongs to the write
transaction and is released by its commit or rollback, so a failed insert
cannot leave it held on a pooled connection. Other engines get an in-process
``asyncio.Lock`` per domain, which is only correct for a single service
instance.
"""

import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class LockDomain(int, enum.Enum):
    """Advisory lock keys"""
    TELEMETRY = 1001
    CATALOG = 1002
    SNAPSHOT = 1003


class AdvisoryLocks:
    """Acquire the advisory lock of a domain for the current transaction"""

    def __init__(self):
        self._local: Dict[LockDomain, asyncio.Lock] = {
            domain: asyncio.Lock() for domain in LockDomain
        }

    @staticmethod
    def _uses_pg_locks(session: AsyncSession) -> bool:
        return session.bind is not None and session.bind.dialect.name == "postgresql"

    @asynccontextmanager
    async def hold(self, session: AsyncSession, domain: LockDomain) -> AsyncIterator[None]:
        """
        Hold ``domain`` while the body runs.

        The PostgreSQL lock joins the session's current transaction (begun
        on demand) and lasts until it is committed or rolled back.
        """
        if self._uses_pg_locks(session):
            await session.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": domain.value}
            )
            logger.debug(f"Acquired advisory lock {domain.name} ({domain.value})")
            yield
        else:
            if self.locked(domain):
                logger.debug(f"Waiting for local lock {domain.name}")
            async with self._local[domain]:
                logger.debug(f"Acquired local lock {domain.name}")
                yield

    def locked(self, domain: LockDomain) -> bool:
        """Whether the in-process lock of ``domain`` is held"""
        return self._local[domain].locked()
