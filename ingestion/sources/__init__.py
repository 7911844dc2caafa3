"""
Refreshable sources and the registry that builds them from settings.
"""

from typing import Dict

from core.config import Settings
from ingestion.base import RefreshSource
from ingestion.client import UpstreamClient
from ingestion.sources.catalog import CatalogSource
from ingestion.sources.snapshot import SnapshotSource
from ingestion.sources.telemetry import TelemetrySource
from storage.store import DurableStore

TELEMETRY_SOURCE = "iss"
CATALOG_SOURCE = "osdr"


def snapshot_intervals(settings: Settings) -> Dict[str, int]:
    """Snapshot feeds enabled by ``settings`` and their refresh intervals"""
    intervals = {
        "apod": settings.APOD_EVERY_SECONDS,
        "neo": settings.NEO_EVERY_SECONDS,
        "flr": settings.DONKI_EVERY_SECONDS,
        "cme": settings.DONKI_EVERY_SECONDS,
        "spacex": settings.SPACEX_EVERY_SECONDS,
    }
    if settings.jwst_enabled:
        intervals["jwst"] = settings.JWST_EVERY_SECONDS
    return intervals


def build_sources(
    settings: Settings,
    client: UpstreamClient,
    store: DurableStore
) -> Dict[str, RefreshSource]:
    """All sources keyed by name"""
    sources: Dict[str, RefreshSource] = {
        TELEMETRY_SOURCE: TelemetrySource(client, store, settings.ISS_EVERY_SECONDS),
        CATALOG_SOURCE: CatalogSource(client, store, settings.FETCH_EVERY_SECONDS),
    }
    for name, interval in snapshot_intervals(settings).items():
        sources[name] = SnapshotSource(name, client, store, interval)
    return sources


__all__ = [
    "TELEMETRY_SOURCE",
    "CATALOG_SOURCE",
    "TelemetrySource",
    "CatalogSource",
    "SnapshotSource",
    "build_sources",
    "snapshot_intervals",
]
