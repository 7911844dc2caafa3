"""
Feed snapshot endpoints (APOD, NEO, DONKI, SpaceX, JWST)
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query
from api.dependencies import get_service
from schemas.api import APIResponse, NoData, RefreshAllResponse
from services.space_data import SpaceDataService

router = APIRouter(prefix="/space", tags=["Space"])


@router.get("/summary", response_model=APIResponse[Dict[str, Any]])
async def summary(service: SpaceDataService = Depends(get_service)):
    """
    Catalog size (`osdr_count`), current snapshot of every feed (`sources`)
    and the latest ISS position (`iss`, absent before the first fetch)
    """
    return APIResponse(data=await service.get_summary())


@router.get("/refresh", response_model=APIResponse[RefreshAllResponse])
async def refresh(
    src: Optional[str] = Query(None, description="Refresh only this source"),
    service: SpaceDataService = Depends(get_service)
):
    """
    Refresh one source, or every feed when ``src`` is omitted.

    A single source surfaces its failure; the refresh-all variant skips
    failing feeds and lists the ones that succeeded.
    """
    if src:
        result = await service.refresh(src)
        return APIResponse(data=RefreshAllResponse(refreshed=[result.source]))
    return APIResponse(data=RefreshAllResponse(refreshed=await service.refresh_all_snapshots()))


@router.get("/{src}/latest", response_model=APIResponse)
async def latest(src: str, service: SpaceDataService = Depends(get_service)):
    """Current snapshot of one feed, or an explicit "no data" payload"""
    snapshot = await service.get_latest(src)
    if snapshot is None:
        return APIResponse(data=NoData(source=src))
    return APIResponse(data=snapshot)
