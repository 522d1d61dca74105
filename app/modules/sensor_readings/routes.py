from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.sensor_readings.schemas import SensorReadingCreate, SensorReadingResponse
from app.modules.sensor_readings.service import SensorReadingService, READINGS_PAGE_SIZE
from app.core.dependencies import require_permission, require_active_subscription, check_resource_owner
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(
    prefix="/sensor-readings",
    tags=["sensor-readings"],
    dependencies=[Depends(require_active_subscription)],
)


def get_sensor_reading_service(supabase: Client = Depends(get_supabase)) -> SensorReadingService:
    return SensorReadingService(supabase)


@router.get("", response_model=List[SensorReadingResponse])
async def list_readings(
    device_id: Optional[str] = None,
    limit: int = READINGS_PAGE_SIZE,
    user_data: Dict = Depends(require_permission("devices:read")),
    service: SensorReadingService = Depends(get_sensor_reading_service)
):
    return service.list_readings(user_data["id"], device_id=device_id, limit=min(max(limit, 1), READINGS_PAGE_SIZE))


@router.get("/latest/{device_id}", response_model=Optional[SensorReadingResponse])
async def get_latest_reading(
    device_id: str,
    user_data: Dict = Depends(require_permission("devices:read")),
    service: SensorReadingService = Depends(get_sensor_reading_service),
    supabase: Client = Depends(get_supabase)
):
    """Latest reading for a device (null when none yet)"""
    device = check_resource_owner("devices", device_id, user_data, supabase, "Device")
    return service.get_latest_reading(device_id, device["user_id"])


@router.post("", response_model=SensorReadingResponse, status_code=201)
async def record_reading(
    reading: SensorReadingCreate,
    user_data: Dict = Depends(require_permission("devices:update")),
    service: SensorReadingService = Depends(get_sensor_reading_service),
    supabase: Client = Depends(get_supabase)
):
    """Ingest a reading for one of the caller's devices"""
    device = check_resource_owner("devices", reading.device_id, user_data, supabase, "Device")
    if device["user_id"] != user_data["id"]:
        raise HTTPException(status_code=403, detail="Readings can only be recorded for your own devices")
    return service.record_reading(reading, device)
