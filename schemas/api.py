"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Generic, TypeVar
from datetime import datetime, timezone

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Envelope
# ============================================================================

class APIResponse(BaseModel, Generic[T]):
    """Success envelope: {"ok": true, "data": ...}"""
    ok: bool = True
    data: T


class ErrorDetail(BaseModel):
    code: str
    message: str
    trace_id: str


class ErrorResponse(BaseModel):
    """Failure envelope: {"ok": false, "error": {...}}"""
    ok: bool = False
    error: ErrorDetail

    class Config:
        json_schema_extra = {
            "example": {
                "ok": False,
                "error": {
                    "code": "UPSTREAM_ERROR",
                    "message": "ISS API returned 503",
                    "trace_id": "5f0c7a52-9a53-4c1e-b5f4-7a1f0f0f7a52"
                }
            }
        }


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    database_connected: bool
    cache_connected: bool
    scheduler_running: bool = False
    sources: List[str] = Field(default_factory=list)
    status: str = Field("ok", description="Overall status: ok, degraded, unhealthy")
    now: datetime = Field(default_factory=_utcnow)

    @validator("status", pre=True, always=True)
    def determine_status(cls, v, values):
        """The store is authoritative; a missing cache only degrades latency"""
        if not values.get("database_connected", False):
            return "unhealthy"
        if not values.get("cache_connected", False):
            return "degraded"
        return "ok"


class RefreshAllResponse(BaseModel):
    refreshed: List[str]


class SyncResponse(BaseModel):
    written: int


class NoData(BaseModel):
    """Explicit "no data yet" payload"""
    source: Optional[str] = None
    message: str = "no data"
