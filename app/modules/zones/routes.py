from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.zones.schemas import (
    ZoneCreate, ZoneUpdate, ZoneResponse, ZoneWithDevicesResponse
)
from app.modules.zones.service import ZoneService
from app.modules.subscriptions.limits import SubscriptionLimits
from app.core.dependencies import (
    require_permission, require_active_subscription, get_subscription_limits, check_resource_owner
)
from supabase import Client
from typing import List, Dict

router = APIRouter(
    prefix="/zones",
    tags=["zones"],
    dependencies=[Depends(require_active_subscription)],
)


def get_zone_service(supabase: Client = Depends(get_supabase)) -> ZoneService:
    return ZoneService(supabase)


@router.get("", response_model=List[ZoneResponse])
async def list_zones(
    user_data: Dict = Depends(require_permission("zones:read")),
    service: ZoneService = Depends(get_zone_service)
):
    return service.list_zones(user_data["id"])


@router.post("", response_model=ZoneResponse, status_code=201)
async def create_zone(
    zone_data: ZoneCreate,
    user_data: Dict = Depends(require_permission("zones:create")),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    service: ZoneService = Depends(get_zone_service)
):
    """Create a zone (refused once the plan's zone limit is reached)"""
    return service.create_zone(zone_data, user_data["id"], limits)


@router.get("/{zone_id}", response_model=ZoneResponse)
async def get_zone(
    zone_id: str,
    user_data: Dict = Depends(require_permission("zones:read")),
    supabase: Client = Depends(get_supabase)
):
    return ZoneResponse(**check_resource_owner("zones", zone_id, user_data, supabase, "Zone"))


@router.get("/{zone_id}/devices", response_model=ZoneWithDevicesResponse)
async def get_zone_with_devices(
    zone_id: str,
    user_data: Dict = Depends(require_permission("zones:read")),
    service: ZoneService = Depends(get_zone_service),
    supabase: Client = Depends(get_supabase)
):
    """Zone with its devices"""
    zone = check_resource_owner("zones", zone_id, user_data, supabase, "Zone")
    return service.get_zone_with_devices(zone)


@router.put("/{zone_id}", response_model=ZoneResponse)
async def update_zone(
    zone_id: str,
    zone_data: ZoneUpdate,
    user_data: Dict = Depends(require_permission("zones:update")),
    service: ZoneService = Depends(get_zone_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("zones", zone_id, user_data, supabase, "Zone")
    return service.update_zone(zone_id, zone_data)


@router.delete("/{zone_id}", status_code=204)
async def delete_zone(
    zone_id: str,
    user_data: Dict = Depends(require_permission("zones:delete")),
    service: ZoneService = Depends(get_zone_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("zones", zone_id, user_data, supabase, "Zone")
    service.delete_zone(zone_id)
    return None
