"""
Health check endpoint with database, cache and scheduler status
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_service
from schemas.api import APIResponse, HealthCheckResponse
from services.space_data import SpaceDataService

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=APIResponse[HealthCheckResponse])
async def health_check(service: SpaceDataService = Depends(get_service)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity (unhealthy without it)
    - Cache connectivity (degraded without it)
    - Scheduler state and configured sources
    """
    return APIResponse(data=HealthCheckResponse(**await service.health()))
