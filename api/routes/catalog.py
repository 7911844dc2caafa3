"""
OSDR dataset catalog endpoints
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from api.dependencies import get_service
from ingestion.sources import CATALOG_SOURCE
from schemas.api import APIResponse, NoData, SyncResponse
from schemas.records import CatalogItemOut
from services.space_data import SpaceDataService

router = APIRouter(prefix="/osdr", tags=["Catalog"])


class CatalogListResponse(BaseModel):
    items: List[CatalogItemOut]


@router.get("/sync", response_model=APIResponse[SyncResponse])
async def sync(service: SpaceDataService = Depends(get_service)):
    """Fetch the catalog now and upsert every item"""
    return APIResponse(data=SyncResponse(written=await service.sync_catalog()))


@router.get("/list", response_model=APIResponse[CatalogListResponse])
async def list_items(
    limit: Optional[int] = Query(None, description="Items to return (1-100, default 20)"),
    service: SpaceDataService = Depends(get_service)
):
    """Newest catalog items first"""
    items = await service.list_catalog(limit)
    return APIResponse(data=CatalogListResponse(items=items))


@router.get("/item/{business_key}", response_model=APIResponse)
async def get_item(business_key: str, service: SpaceDataService = Depends(get_service)):
    """One catalog item by its dataset id, or an explicit "no data" payload"""
    item = await service.get_catalog_item(business_key)
    if item is None:
        return APIResponse(data=NoData(source=CATALOG_SOURCE))
    return APIResponse(data=item)
