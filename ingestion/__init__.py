"""
Refresh pipeline components for upstream space data.

Modules:
    client: Upstream HTTP client with bounded exponential backoff
    base: Abstract base class for refreshable sources
    runner: Refresh orchestrator (fetch -> persist -> invalidate) with state tracking
    scheduler: APScheduler integration, one interval job per source

Subpackages:
    sources: Telemetry, catalog and snapshot sources
    transformers: Catalog normalization and telemetry trend derivation

Architecture:
    Every source refresh goes through the same three phases:

    1. Fetch - Call the upstream API with retry and timeout
    2. Persist - Append or upsert rows in the durable store
    3. Invalidate - Drop the cache entries the new rows made stale

    A failed phase leaves previously stored and cached data untouched.

Usage:
    from ingestion.client import UpstreamClient
    from ingestion.sources import build_sources
    from ingestion.runner import RefreshRunner

Example:
    client = UpstreamClient(settings)
    sources = build_sources(settings, client, store)

    runner = RefreshRunner(cache)
    result = await runner.run(sources["iss"])

    print(f"Wrote {result.records_written} records")

Error Handling:
    Upstream failures surface as UpstreamError and database failures as
    StorageError (see core.exceptions). Scheduled ticks log them and keep going.
"""

__all__ = [
    "UpstreamClient",
    "RefreshSource",
    "RefreshRunner",
    "RefreshScheduler",
    "CatalogNormalizer",
]
