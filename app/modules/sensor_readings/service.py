import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.sensor_readings.schemas import SensorReadingCreate, SensorReadingResponse
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

READINGS_PAGE_SIZE = 100


class SensorReadingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_readings(
        self,
        user_id: str,
        device_id: Optional[str] = None,
        limit: int = READINGS_PAGE_SIZE
    ) -> List[SensorReadingResponse]:
        """Newest readings for the user's devices"""
        try:
            query = self.supabase.table("sensor_readings")\
                .select("*")\
                .eq("user_id", user_id)
            if device_id:
                query = query.eq("device_id", device_id)
            result = query.order("timestamp", desc=True).limit(limit).execute()
            return [SensorReadingResponse(**reading) for reading in result.data]
        except Exception as e:
            logger.error(f"Error fetching sensor readings: {e}")
            raise HTTPException(status_code=500, detail="Failed to load sensor readings")

    def get_latest_reading(self, device_id: str, user_id: Optional[str] = None) -> Optional[SensorReadingResponse]:
        """Latest reading for a device, or None when it has not reported yet"""
        try:
            query = self.supabase.table("sensor_readings")\
                .select("*")\
                .eq("device_id", device_id)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.order("timestamp", desc=True).limit(1).execute()
            if not result.data:
                return None
            return SensorReadingResponse(**result.data[0])
        except Exception as e:
            logger.error(f"Error fetching latest reading: {e}")
            return None

    def record_reading(self, reading: SensorReadingCreate, device: dict) -> SensorReadingResponse:
        """Store a reading and mirror it on the device's last_reading"""
        try:
            timestamp = (reading.timestamp or datetime.now(timezone.utc)).isoformat()
            result = self.supabase.table("sensor_readings").insert({
                "user_id": device["user_id"],
                "device_id": device["id"],
                "value": reading.value,
                "unit": reading.unit,
                "timestamp": timestamp
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record reading")

            self.supabase.table("devices")\
                .update({"last_reading": reading.value, "last_updated": timestamp})\
                .eq("id", device["id"])\
                .execute()

            return SensorReadingResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error recording sensor reading: {e}")
            raise HTTPException(status_code=500, detail=str(e))
