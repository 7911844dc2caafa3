"""
Durable store for telemetry records, catalog items and feed snapshots.

Every operation opens its own session from the shared session factory, so one
DurableStore instance is safe to share between background refresh loops and
request handlers. Writes run in a single transaction under the advisory lock
of their domain; reads take no lock.
"""

from typing import Any, Awaitable, Callable, List, Optional, TypeVar
from datetime import datetime
from sqlalchemy import select, func, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from models.base import utcnow
from models.fetch_record import FetchRecord
from models.catalog_item import CatalogItem
from models.source_snapshot import SourceSnapshot
from schemas.records import FetchRecordOut, CatalogItemOut, SourceSnapshotOut
from storage.locks import AdvisoryLocks, LockDomain
from core.exceptions import StorageError
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DurableStore:
    """
    Store of record for everything the service fetches.

    Ensures:
    - At most one in-flight write per domain (telemetry / catalog / snapshot)
    - At most one catalog row per non-null business key
    - Storage failures surface as StorageError, never as raw driver errors
    """

    def __init__(self, session_factory: async_sessionmaker, locks: Optional[AdvisoryLocks] = None):
        self.session_factory = session_factory
        self.locks = locks or AdvisoryLocks()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _write(
        self,
        domain: LockDomain,
        work: Callable[[AsyncSession], Awaitable[T]],
        operation: str,
        table_name: str
    ) -> T:
        """Run ``work`` in one locked transaction and commit it"""
        async with self.session_factory() as session:
            try:
                async with self.locks.hold(session, domain):
                    result = await work(session)
                    await session.commit()
                return result
            except SQLAlchemyError as e:
                # Rollback also ends the transaction that owns the advisory lock
                await session.rollback()
                logger.error(f"{operation} on {table_name} failed: {e}")
                raise StorageError(
                    f"Failed to write {table_name}",
                    context={"operation": operation, "table_name": table_name},
                    original_exception=e
                )

    async def _read(
        self,
        work: Callable[[AsyncSession], Awaitable[T]],
        table_name: str
    ) -> T:
        async with self.session_factory() as session:
            try:
                return await work(session)
            except SQLAlchemyError as e:
                logger.error(f"SELECT on {table_name} failed: {e}")
                raise StorageError(
                    f"Failed to read {table_name}",
                    context={"operation": "SELECT", "table_name": table_name},
                    original_exception=e
                )

    @staticmethod
    def _insert_for(session: AsyncSession):
        """Dialect-specific INSERT that supports ON CONFLICT"""
        if session.bind.dialect.name == "postgresql":
            return postgresql.insert
        return sqlite.insert

    # ------------------------------------------------------------------
    # Telemetry log
    # ------------------------------------------------------------------

    async def append_fetch_record(self, source_url: str, payload: Any) -> FetchRecordOut:
        """Append one telemetry record"""
        async def work(session: AsyncSession) -> FetchRecordOut:
            record = FetchRecord(source_url=source_url, payload=payload, fetched_at=utcnow())
            session.add(record)
            await session.flush()
            return FetchRecordOut.model_validate(record)

        record = await self._write(LockDomain.TELEMETRY, work, "INSERT", FetchRecord.__tablename__)
        logger.debug(f"Appended telemetry record id={record.id}")
        return record

    async def get_latest_fetch_record(self) -> Optional[FetchRecordOut]:
        records = await self.get_recent_fetch_records(1)
        return records[0] if records else None

    async def get_recent_fetch_records(self, n: int) -> List[FetchRecordOut]:
        """Most recent ``n`` telemetry records, newest first"""
        async def work(session: AsyncSession) -> List[FetchRecordOut]:
            result = await session.execute(
                select(FetchRecord).order_by(FetchRecord.id.desc()).limit(n)
            )
            return [FetchRecordOut.model_validate(r) for r in result.scalars().all()]

        return await self._read(work, FetchRecord.__tablename__)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def upsert_catalog_item(
        self,
        business_key: Optional[str],
        title: Optional[str],
        status: Optional[str],
        external_updated_at: Optional[datetime],
        raw: Any
    ) -> CatalogItemOut:
        """
        Insert a catalog item, or update it when its business key exists.

        Items without a business key are always inserted as new rows.

        Returns:
            The stored row after the write
        """
        async def work(session: AsyncSession) -> CatalogItemOut:
            insert = self._insert_for(session)
            stmt = insert(CatalogItem).values(
                business_key=business_key,
                title=title,
                status=status,
                external_updated_at=external_updated_at,
                raw=raw,
                inserted_at=utcnow(),
            )
            if business_key is not None:
                stmt = stmt.on_conflict_do_update(
                    index_elements=["business_key"],
                    set_={
                        "title": stmt.excluded.title,
                        "status": stmt.excluded.status,
                        "external_updated_at": stmt.excluded.external_updated_at,
                        "raw": stmt.excluded.raw,
                    }
                )
            stmt = stmt.returning(CatalogItem).execution_options(populate_existing=True)
            result = await session.execute(stmt)
            return CatalogItemOut.model_validate(result.scalars().one())

        return await self._write(LockDomain.CATALOG, work, "UPSERT", CatalogItem.__tablename__)

    async def get_catalog_item(self, business_key: str) -> Optional[CatalogItemOut]:
        async def work(session: AsyncSession) -> Optional[CatalogItemOut]:
            result = await session.execute(
                select(CatalogItem).where(CatalogItem.business_key == business_key)
            )
            item = result.scalar_one_or_none()
            return CatalogItemOut.model_validate(item) if item else None

        return await self._read(work, CatalogItem.__tablename__)

    async def list_catalog_items(self, limit: int) -> List[CatalogItemOut]:
        """Newest catalog items first"""
        async def work(session: AsyncSession) -> List[CatalogItemOut]:
            result = await session.execute(
                select(CatalogItem)
                .order_by(CatalogItem.inserted_at.desc(), CatalogItem.id.desc())
                .limit(limit)
            )
            return [CatalogItemOut.model_validate(i) for i in result.scalars().all()]

        return await self._read(work, CatalogItem.__tablename__)

    async def count_catalog_items(self) -> int:
        async def work(session: AsyncSession) -> int:
            result = await session.execute(select(func.count()).select_from(CatalogItem))
            return result.scalar() or 0

        return await self._read(work, CatalogItem.__tablename__)

    # ------------------------------------------------------------------
    # Feed snapshots
    # ------------------------------------------------------------------

    async def append_source_snapshot(self, source: str, payload: Any) -> SourceSnapshotOut:
        """Append one snapshot for ``source``"""
        async def work(session: AsyncSession) -> SourceSnapshotOut:
            snapshot = SourceSnapshot(source=source, payload=payload, fetched_at=utcnow())
            session.add(snapshot)
            await session.flush()
            return SourceSnapshotOut.model_validate(snapshot)

        return await self._write(LockDomain.SNAPSHOT, work, "INSERT", SourceSnapshot.__tablename__)

    async def get_latest_snapshot(self, source: str) -> Optional[SourceSnapshotOut]:
        async def work(session: AsyncSession) -> Optional[SourceSnapshotOut]:
            result = await session.execute(
                select(SourceSnapshot)
                .where(SourceSnapshot.source == source)
                .order_by(SourceSnapshot.id.desc())
                .limit(1)
            )
            snapshot = result.scalar_one_or_none()
            return SourceSnapshotOut.model_validate(snapshot) if snapshot else None

        return await self._read(work, SourceSnapshot.__tablename__)

    async def get_latest_snapshot_per_source(self) -> List[SourceSnapshotOut]:
        """Current snapshot of every source that has one, ordered by source"""
        async def work(session: AsyncSession) -> List[SourceSnapshotOut]:
            latest_ids = (
                select(func.max(SourceSnapshot.id))
                .group_by(SourceSnapshot.source)
            )
            result = await session.execute(
                select(SourceSnapshot)
                .where(SourceSnapshot.id.in_(latest_ids))
                .order_by(SourceSnapshot.source)
            )
            return [SourceSnapshotOut.model_validate(s) for s in result.scalars().all()]

        return await self._read(work, SourceSnapshot.__tablename__)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """True when the database answers ``SELECT 1``"""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {str(e)}")
            return False
