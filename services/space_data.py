"""
Request-facing service: cached reads over the durable store plus on-demand
refreshes through the refresh runner.

Reads go through the read-through cache; writes only happen inside refresh
ticks, which invalidate the affected cache keys after the store commits.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic_core import to_jsonable_python

from cache import keys
from cache.read_through import ReadThroughCache
from core.config import Settings
from core.exceptions import ServiceError, ValidationError
from core.validation import validate_limit, validate_source_id
from ingestion.base import RefreshSource
from ingestion.runner import RefreshRunner
from ingestion.scheduler import RefreshScheduler
from ingestion.sources import CATALOG_SOURCE, SnapshotSource
from ingestion.transformers.trend import derive_trend
from schemas.records import (
    CatalogItemOut,
    FetchRecordOut,
    RefreshResult,
    SourceSnapshotOut,
    TrendDerivation,
)
from storage.store import DurableStore

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100


class SpaceDataService:
    """
    Service facade consumed by the API layer.

    Attributes:
        store: Durable store (source of truth)
        cache: Read-through cache in front of the store
        runner: Executes refresh ticks
        sources: Every refreshable source keyed by name
    """

    def __init__(
        self,
        store: DurableStore,
        cache: ReadThroughCache,
        runner: RefreshRunner,
        sources: Dict[str, RefreshSource],
        settings: Settings,
        scheduler: Optional[RefreshScheduler] = None
    ):
        self.store = store
        self.cache = cache
        self.runner = runner
        self.sources = sources
        self.settings = settings
        self.scheduler = scheduler

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _source(self, source_name: str) -> RefreshSource:
        validate_source_id(source_name)
        source = self.sources.get(source_name)
        if source is None:
            raise ValidationError(
                f"Unknown source: {source_name}",
                context={"field_name": "source", "field_value": source_name},
                code="INVALID_SOURCE"
            )
        return source

    def snapshot_source_names(self) -> List[str]:
        return [name for name, s in self.sources.items() if isinstance(s, SnapshotSource)]

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self, source_name: str) -> RefreshResult:
        """
        Refresh one source now.

        Raises:
            ValidationError: malformed or unknown source name
            UpstreamError: the fetch failed after all retries
            StorageError: the write failed
        """
        source = self._source(source_name)
        return await self.runner.run(source)

    async def refresh_all_snapshots(self) -> List[str]:
        """Refresh every snapshot feed; failures are logged and skipped"""
        refreshed = []
        for name in self.snapshot_source_names():
            try:
                await self.runner.run(self.sources[name])
                refreshed.append(name)
            except ServiceError as e:
                logger.warning(f"Refresh of {name} skipped: {e.message}")
        return refreshed

    async def sync_catalog(self) -> int:
        """Run the catalog source; returns the number of items written"""
        result = await self.runner.run(self.sources[CATALOG_SOURCE])
        return result.records_written

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    async def get_latest(self, source_name: str) -> Optional[SourceSnapshotOut]:
        """Current snapshot of ``source_name``, None when nothing was stored yet"""
        if not isinstance(self._source(source_name), SnapshotSource):
            raise ValidationError(
                f"{source_name} has no snapshots",
                context={"field_name": "source", "field_value": source_name},
                code="INVALID_SOURCE"
            )
        return await self.cache.get_or_load(
            keys.source_latest(source_name),
            lambda: self.store.get_latest_snapshot(source_name),
            ttl=self.settings.CACHE_TTL_SOURCE_LATEST,
            decode=SourceSnapshotOut.model_validate
        )

    async def get_latest_telemetry(self) -> Optional[FetchRecordOut]:
        return await self.cache.get_or_load(
            keys.telemetry_latest(),
            self.store.get_latest_fetch_record,
            ttl=self.settings.CACHE_TTL_TELEMETRY_LATEST,
            decode=FetchRecordOut.model_validate
        )

    async def get_trend(self) -> TrendDerivation:
        async def load() -> TrendDerivation:
            return derive_trend(await self.store.get_recent_fetch_records(2))

        return await self.cache.get_or_load(
            keys.telemetry_trend(),
            load,
            ttl=self.settings.CACHE_TTL_TELEMETRY_TREND,
            decode=TrendDerivation.model_validate
        )

    async def list_catalog(self, limit: Optional[int] = None) -> List[CatalogItemOut]:
        """
        Newest catalog items.

        Raises:
            ValidationError: limit outside 1..100
        """
        limit = validate_limit(
            DEFAULT_LIST_LIMIT if limit is None else limit,
            maximum=MAX_LIST_LIMIT
        )
        return await self.cache.get_or_load(
            keys.catalog_list(limit),
            lambda: self.store.list_catalog_items(limit),
            ttl=self.settings.CACHE_TTL_CATALOG,
            decode=lambda data: [CatalogItemOut.model_validate(item) for item in data]
        )

    async def get_catalog_item(self, business_key: str) -> Optional[CatalogItemOut]:
        return await self.cache.get_or_load(
            keys.catalog_item(business_key),
            lambda: self.store.get_catalog_item(business_key),
            ttl=self.settings.CACHE_TTL_CATALOG,
            decode=CatalogItemOut.model_validate
        )

    async def count_catalog(self) -> int:
        return await self.cache.get_or_load(
            keys.catalog_count(),
            self.store.count_catalog_items,
            ttl=self.settings.CACHE_TTL_CATALOG,
            decode=int
        )

    async def get_summary(self) -> Dict[str, Any]:
        """
        Aggregated view: catalog size, current snapshot of every feed and the
        latest telemetry record (when there is one).
        """
        async def load() -> Dict[str, Any]:
            summary: Dict[str, Any] = {
                "osdr_count": await self.store.count_catalog_items(),
                "sources": {
                    s.source: {"at": s.fetched_at, "payload": s.payload}
                    for s in await self.store.get_latest_snapshot_per_source()
                },
            }
            telemetry = await self.store.get_latest_fetch_record()
            if telemetry is not None:
                summary["iss"] = {"at": telemetry.fetched_at, "payload": telemetry.payload}
            return to_jsonable_python(summary)

        return await self.cache.get_or_load(
            keys.space_summary(),
            load,
            ttl=self.settings.CACHE_TTL_SUMMARY
        )

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health(self) -> Dict[str, Any]:
        return {
            "database_connected": await self.store.ping(),
            "cache_connected": await self.cache.ping(),
            "scheduler_running": bool(self.scheduler and self.scheduler.running),
            "sources": sorted(self.sources),
        }
