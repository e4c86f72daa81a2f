"""Zones API endpoints"""
from typing import List
from fastapi import APIRouter, Depends

from libseat.api.deps import get_services, require_admin
from libseat.schemas import ZoneResponse, ZoneUpdate
from libseat.services.container import Services

router = APIRouter()


@router.get("/zones", response_model=List[ZoneResponse])
async def list_zones(services: Services = Depends(get_services)):
    zones = await services.admin.list_zones()
    return [ZoneResponse.model_validate(zone) for zone in zones]


@router.get("/zones/{zone_id}", response_model=ZoneResponse)
async def get_zone(zone_id: int, services: Services = Depends(get_services)):
    return ZoneResponse.model_validate(await services.admin.get_zone(zone_id))


@router.put("/zones/{zone_id}", response_model=ZoneResponse, dependencies=[Depends(require_admin)])
async def update_zone(
    zone_id: int,
    payload: ZoneUpdate,
    services: Services = Depends(get_services),
):
    """Rename a zone or put it into (or out of) maintenance"""
    zone = await services.admin.update_zone(zone_id, **payload.model_dump(exclude_unset=True))
    return ZoneResponse.model_validate(zone)
