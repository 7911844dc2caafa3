"""
Abstract base class for refreshable data sources
"""

from abc import ABC, abstractmethod
from typing import Any, List
from ingestion.client import UpstreamClient
from storage.store import DurableStore
import logging

logger = logging.getLogger(__name__)


class RefreshSource(ABC):
    """
    Abstract base class for all refreshable sources.

    A source knows how to fetch its upstream document, how to persist it and
    which cache entries a successful write makes stale. Scheduling, state
    tracking and cache invalidation are done by RefreshRunner.
    """

    def __init__(
        self,
        name: str,
        client: UpstreamClient,
        store: DurableStore,
        interval_seconds: int
    ):
        self.name = name
        self.client = client
        self.store = store
        self.interval_seconds = interval_seconds

    @abstractmethod
    async def fetch(self) -> Any:
        """
        Fetch the upstream document.

        Raises:
            UpstreamError: the fetch failed after all retries
        """
        pass

    @abstractmethod
    async def persist(self, payload: Any) -> List[int]:
        """
        Persist a fetched document.

        Returns:
            Ids of the rows written

        Raises:
            StorageError: the write failed
        """
        pass

    def stale_keys(self) -> List[str]:
        """Exact cache keys invalidated after a successful write"""
        return []

    def stale_prefixes(self) -> List[str]:
        """Cache key prefixes invalidated after a successful write"""
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} every={self.interval_seconds}s>"
