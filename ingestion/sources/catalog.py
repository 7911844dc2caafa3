"""
Dataset catalog source: bulk refresh with per-item upsert.

One bad item never aborts the batch; it is logged and skipped. The batch
only fails when nothing could be written although items were present.
"""

from typing import Any, List
import logging

from cache import keys
from core.exceptions import StorageError
from ingestion.base import RefreshSource
from ingestion.transformers.normalizer import CatalogNormalizer

logger = logging.getLogger(__name__)


class CatalogSource(RefreshSource):

    def __init__(
        self,
        client,
        store,
        interval_seconds: int,
        name: str = "osdr",
        normalizer: CatalogNormalizer = None
    ):
        super().__init__(name, client, store, interval_seconds)
        self.normalizer = normalizer or CatalogNormalizer()

    async def fetch(self) -> Any:
        return await self.client.fetch_catalog()

    async def persist(self, payload: Any) -> List[int]:
        items = self.normalizer.extract_items(payload)
        written: List[int] = []
        failures = []

        for index, item in enumerate(items):
            try:
                normalized = self.normalizer.normalize(item)
                stored = await self.store.upsert_catalog_item(
                    business_key=normalized.business_key,
                    title=normalized.title,
                    status=normalized.status,
                    external_updated_at=normalized.external_updated_at,
                    raw=normalized.raw,
                )
                written.append(stored.id)
            except Exception as e:
                failures.append(e)
                logger.error(
                    f"Catalog item {index} skipped: {str(e)}",
                    extra={"error_context": {"index": index, "error_type": type(e).__name__}}
                )

        if failures:
            logger.warning(f"Catalog refresh: {len(written)} written, {len(failures)} skipped")

        if items and not written:
            last = failures[-1]
            if isinstance(last, StorageError):
                raise last
            raise StorageError(
                "No catalog item could be stored",
                context={"operation": "UPSERT", "table_name": "osdr_items", "items": len(items)},
                original_exception=last
            )

        return written

    def stale_keys(self) -> List[str]:
        return [keys.space_summary()]

    def stale_prefixes(self) -> List[str]:
        return [keys.CATALOG_PREFIX]
