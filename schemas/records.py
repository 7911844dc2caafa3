"""
Read models for persisted records and derived values.

These are what the service layer returns and what the read-through cache
stores (as JSON), so every field must survive a JSON round trip.
"""

from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime


class FetchRecordOut(BaseModel):
    """One telemetry log entry"""
    id: int
    fetched_at: datetime
    source_url: str
    payload: Any

    class Config:
        from_attributes = True


class CatalogItemOut(BaseModel):
    """One catalog item"""
    id: int
    business_key: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    external_updated_at: Optional[datetime] = None
    inserted_at: datetime
    raw: Any

    class Config:
        from_attributes = True


class SourceSnapshotOut(BaseModel):
    """One feed snapshot"""
    id: int
    source: str
    fetched_at: datetime
    payload: Any

    class Config:
        from_attributes = True


class TrendDerivation(BaseModel):
    """
    Movement of the ISS between the two most recent telemetry records.

    Computed on demand, never persisted. ``empty()`` is the zero-state used
    when fewer than two records exist.
    """
    movement: bool = False
    delta_km: float = 0.0
    dt_sec: float = 0.0
    velocity_kmh: Optional[float] = None
    from_time: Optional[datetime] = None
    to_time: Optional[datetime] = None
    from_lat: Optional[float] = None
    from_lon: Optional[float] = None
    to_lat: Optional[float] = None
    to_lon: Optional[float] = None

    @classmethod
    def empty(cls) -> "TrendDerivation":
        return cls()


class RefreshResult(BaseModel):
    """Outcome of one refresh tick"""
    source: str
    status: str
    records_written: int = 0
    keys_invalidated: int = 0
    duration_ms: float = 0.0
    record_ids: List[int] = Field(default_factory=list)
