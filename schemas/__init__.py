"""
Pydantic schemas for data validation and serialization.

Schemas:
    normalized: Catalog items normalized from upstream documents
    records: Read models for persisted rows, trend derivation, refresh results
    api: API envelope, error body and health check models

Usage:
    from schemas.records import FetchRecordOut, TrendDerivation
    from schemas.api import APIResponse, ErrorResponse

Validation:
    Read models are built from ORM rows with ``model_validate`` and are
    JSON-serializable, which is what lets the read-through cache store them.
"""

__all__ = [
    "NormalizedCatalogItem",
    "FetchRecordOut",
    "CatalogItemOut",
    "SourceSnapshotOut",
    "TrendDerivation",
    "RefreshResult",
    "APIResponse",
    "ErrorResponse",
    "HealthCheckResponse",
]
