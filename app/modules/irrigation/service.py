import logging
from datetime import datetime, timezone, timedelta
from zoneinfo import ZoneInfo
from supabase import Client
from app.config import settings
from app.modules.irrigation.schemas import ScheduleCreate, ScheduleUpdate, ScheduleResponse
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def farm_now() -> datetime:
    """Current time in the farm timezone schedules are written in"""
    return datetime.now(ZoneInfo(settings.weather_timezone))


def next_run(start_time: str, days_of_week: List[int], now: datetime) -> Optional[datetime]:
    """Next datetime (same tz as now) the schedule would start, or None without days."""
    if not days_of_week:
        return None
    hour, minute = int(start_time[0:2]), int(start_time[3:5])
    for offset in range(8):
        day = now + timedelta(days=offset)
        if day.isoweekday() not in days_of_week:
            continue
        candidate = day.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if candidate >= now:
            return candidate
    return None


def schedule_from_row(row: dict, now: Optional[datetime] = None) -> ScheduleResponse:
    data = dict(row)
    data["start_time"] = str(data["start_time"])[:5]
    if data.get("is_active"):
        data["next_run"] = next_run(data["start_time"], data.get("days_of_week") or [], now or farm_now())
    return ScheduleResponse(**data)


class IrrigationScheduleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _verify_zone_and_device(self, zone_id: Optional[str], device_id: Optional[str], user_id: str):
        for table, resource_id, label in (("zones", zone_id, "Zone"), ("devices", device_id, "Device")):
            if not resource_id:
                continue
            result = self.supabase.table(table)\
                .select("id, user_id")\
                .eq("id", resource_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=f"{label} not found")
            if result.data[0].get("user_id") != user_id:
                raise HTTPException(status_code=403, detail=f"{label} belongs to another user")

    def list_schedules(self, user_id: str) -> List[ScheduleResponse]:
        try:
            result = self.supabase.table("irrigation_schedules")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            now = farm_now()
            return [schedule_from_row(row, now) for row in result.data]
        except Exception as e:
            logger.error(f"Error fetching irrigation schedules: {e}")
            raise HTTPException(status_code=500, detail="Failed to load irrigation schedules")

    def create_schedule(self, schedule_data: ScheduleCreate, user_id: str) -> ScheduleResponse:
        try:
            self._verify_zone_and_device(schedule_data.zone_id, schedule_data.device_id, user_id)
            result = self.supabase.table("irrigation_schedules").insert({
                **schedule_data.model_dump(mode="json"),
                "user_id": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create irrigation schedule")

            return schedule_from_row(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating irrigation schedule: {e}")
            raise HTTPException(status_code=500, detail="Failed to create irrigation schedule")

    def update_schedule(self, schedule_id: str, schedule_data: ScheduleUpdate, user_id: str) -> ScheduleResponse:
        try:
            update_data = schedule_data.model_dump(mode="json", exclude_unset=True)
            self._verify_zone_and_device(update_data.get("zone_id"), update_data.get("device_id"), user_id)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("irrigation_schedules")\
                .update(update_data)\
                .eq("id", schedule_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Irrigation schedule not found")

            return schedule_from_row(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating irrigation schedule: {e}")
            raise HTTPException(status_code=500, detail="Failed to update irrigation schedule")

    def toggle_schedule(self, schedule: dict) -> ScheduleResponse:
        """Flip is_active"""
        return self.update_schedule(
            schedule["id"],
            ScheduleUpdate(is_active=not schedule.get("is_active", False)),
            schedule["user_id"]
        )

    def delete_schedule(self, schedule_id: str) -> bool:
        try:
            result = self.supabase.table("irrigation_schedules")\
                .delete()\
                .eq("id", schedule_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting irrigation schedule: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete irrigation schedule")
