from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.devices.schemas import (
    DeviceCreate, DeviceUpdate, DeviceStatusUpdate, DeviceResponse, DeviceStatus
)
from app.modules.devices.service import DeviceService
from app.modules.subscriptions.limits import SubscriptionLimits
from app.core.dependencies import (
    require_permission, require_active_subscription, get_subscription_limits, check_resource_owner
)
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(
    prefix="/devices",
    tags=["devices"],
    dependencies=[Depends(require_active_subscription)],
)


def get_device_service(supabase: Client = Depends(get_supabase)) -> DeviceService:
    return DeviceService(supabase)


@router.get("", response_model=List[DeviceResponse])
async def list_devices(
    zone_id: Optional[str] = None,
    status: Optional[DeviceStatus] = None,
    user_data: Dict = Depends(require_permission("devices:read")),
    service: DeviceService = Depends(get_device_service)
):
    """List devices, optionally filtered by zone or status"""
    return service.list_devices(user_data["id"], zone_id=zone_id, status=status)


@router.post("", response_model=DeviceResponse, status_code=201)
async def create_device(
    device_data: DeviceCreate,
    user_data: Dict = Depends(require_permission("devices:create")),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    service: DeviceService = Depends(get_device_service)
):
    return service.create_device(device_data, user_data["id"], limits)


@router.get("/{device_id}", response_model=DeviceResponse)
async def get_device(
    device_id: str,
    user_data: Dict = Depends(require_permission("devices:read")),
    supabase: Client = Depends(get_supabase)
):
    return DeviceResponse(**check_resource_owner("devices", device_id, user_data, supabase, "Device"))


@router.put("/{device_id}", response_model=DeviceResponse)
async def update_device(
    device_id: str,
    device_data: DeviceUpdate,
    user_data: Dict = Depends(require_permission("devices:update")),
    service: DeviceService = Depends(get_device_service),
    supabase: Client = Depends(get_supabase)
):
    device = check_resource_owner("devices", device_id, user_data, supabase, "Device")
    return service.update_device(device_id, device_data, device["user_id"])


@router.patch("/{device_id}/status", response_model=DeviceResponse)
async def update_device_status(
    device_id: str,
    status_data: DeviceStatusUpdate,
    user_data: Dict = Depends(require_permission("devices:update")),
    service: DeviceService = Depends(get_device_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("devices", device_id, user_data, supabase, "Device")
    return service.update_device_status(device_id, status_data.status)


@router.delete("/{device_id}", status_code=204)
async def delete_device(
    device_id: str,
    user_data: Dict = Depends(require_permission("devices:delete")),
    service: DeviceService = Depends(get_device_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("devices", device_id, user_data, supabase, "Device")
    service.delete_device(device_id)
    return None
