"""
ISS telemetry endpoints
"""

from fastapi import APIRouter, Depends, Request
from api.dependencies import get_service
from ingestion.sources import TELEMETRY_SOURCE
from schemas.api import APIResponse, NoData
from schemas.records import RefreshResult, TrendDerivation
from services.space_data import SpaceDataService
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Telemetry"])


@router.get("/last", response_model=APIResponse)
async def last_position(service: SpaceDataService = Depends(get_service)):
    """Most recent ISS position, or an explicit "no data" payload"""
    record = await service.get_latest_telemetry()
    if record is None:
        return APIResponse(data=NoData(source=TELEMETRY_SOURCE))
    return APIResponse(data=record)


@router.get("/fetch", response_model=APIResponse[RefreshResult])
async def fetch_position(request: Request, service: SpaceDataService = Depends(get_service)):
    """Fetch and store the current ISS position now"""
    logger.info(f"[{getattr(request.state, 'request_id', '-')}] Manual ISS refresh")
    return APIResponse(data=await service.refresh(TELEMETRY_SOURCE))


@router.get("/iss/trend", response_model=APIResponse[TrendDerivation])
async def trend(service: SpaceDataService = Depends(get_service)):
    """Movement between the two latest positions"""
    return APIResponse(data=await service.get_trend())
