"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and portable column types
    fetch_record: Append-only ISS telemetry log
    catalog_item: OSDR catalog items, deduplicated by business key
    source_snapshot: Per-source feed snapshots (APOD, NEO, DONKI, ...)

Database Schema:
    All models inherit from the Base declarative class. JSON payloads are
    stored as JSONB on PostgreSQL and JSON on other engines.

Usage:
    from models import FetchRecord, CatalogItem, SourceSnapshot
"""

from models.base import Base
from models.fetch_record import FetchRecord
from models.catalog_item import CatalogItem
from models.source_snapshot import SourceSnapshot

__all__ = [
    "Base",
    "FetchRecord",
    "CatalogItem",
    "SourceSnapshot",
]
