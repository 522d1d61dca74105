from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.irrigation.schemas import ScheduleCreate, ScheduleUpdate, ScheduleResponse
from app.modules.irrigation.service import IrrigationScheduleService, schedule_from_row
from app.core.dependencies import require_permission, require_active_subscription, check_resource_owner
from supabase import Client
from typing import List, Dict

router = APIRouter(
    prefix="/irrigation-schedules",
    tags=["irrigation"],
    dependencies=[Depends(require_active_subscription)],
)


def get_schedule_service(supabase: Client = Depends(get_supabase)) -> IrrigationScheduleService:
    return IrrigationScheduleService(supabase)


@router.get("", response_model=List[ScheduleResponse])
async def list_schedules(
    user_data: Dict = Depends(require_permission("irrigation:read")),
    service: IrrigationScheduleService = Depends(get_schedule_service)
):
    return service.list_schedules(user_data["id"])


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    schedule_data: ScheduleCreate,
    user_data: Dict = Depends(require_permission("irrigation:create")),
    service: IrrigationScheduleService = Depends(get_schedule_service)
):
    return service.create_schedule(schedule_data, user_data["id"])


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: str,
    user_data: Dict = Depends(require_permission("irrigation:read")),
    supabase: Client = Depends(get_supabase)
):
    return schedule_from_row(
        check_resource_owner("irrigation_schedules", schedule_id, user_data, supabase, "Irrigation schedule")
    )


@router.put("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: str,
    schedule_data: ScheduleUpdate,
    user_data: Dict = Depends(require_permission("irrigation:update")),
    service: IrrigationScheduleService = Depends(get_schedule_service),
    supabase: Client = Depends(get_supabase)
):
    schedule = check_resource_owner("irrigation_schedules", schedule_id, user_data, supabase, "Irrigation schedule")
    return service.update_schedule(schedule_id, schedule_data, schedule["user_id"])


@router.post("/{schedule_id}/toggle", response_model=ScheduleResponse)
async def toggle_schedule(
    schedule_id: str,
    user_data: Dict = Depends(require_permission("irrigation:update")),
    service: IrrigationScheduleService = Depends(get_schedule_service),
    supabase: Client = Depends(get_supabase)
):
    """Activate or pause a schedule"""
    schedule = check_resource_owner("irrigation_schedules", schedule_id, user_data, supabase, "Irrigation schedule")
    return service.toggle_schedule(schedule)


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
    schedule_id: str,
    user_data: Dict = Depends(require_permission("irrigation:delete")),
    service: IrrigationScheduleService = Depends(get_schedule_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("irrigation_schedules", schedule_id, user_data, supabase, "Irrigation schedule")
    service.delete_schedule(schedule_id)
    return None
