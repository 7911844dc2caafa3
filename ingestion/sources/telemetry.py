"""
ISS telemetry source: every tick appends one position record
"""

from typing import Any, List

from cache import keys
from ingestion.base import RefreshSource


class TelemetrySource(RefreshSource):

    def __init__(self, client, store, interval_seconds: int, name: str = "iss"):
        super().__init__(name, client, store, interval_seconds)

    async def fetch(self) -> Any:
        return await self.client.fetch_telemetry()

    async def persist(self, payload: Any) -> List[int]:
        record = await self.store.append_fetch_record(
            source_url=self.client.settings.WHERE_ISS_URL,
            payload=payload
        )
        return [record.id]

    def stale_keys(self) -> List[str]:
        return [keys.telemetry_latest(), keys.telemetry_trend(), keys.space_summary()]
