"""
Feed snapshot sources (APOD, NEO, DONKI, SpaceX, JWST).

Each tick stores the whole upstream document as a new snapshot row; the
current snapshot of a feed is its newest row.
"""

from typing import Any, List

from cache import keys
from ingestion.base import RefreshSource


class SnapshotSource(RefreshSource):
    """Snapshot of the feed the client serves under ``name``"""

    async def fetch(self) -> Any:
        return await self.client.fetch(self.name)

    async def persist(self, payload: Any) -> List[int]:
        snapshot = await self.store.append_source_snapshot(self.name, payload)
        return [snapshot.id]

    def stale_keys(self) -> List[str]:
        return [keys.source_latest(self.name), keys.space_summary()]
