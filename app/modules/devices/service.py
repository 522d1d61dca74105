import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.devices.schemas import (
    DeviceCreate, DeviceUpdate, DeviceResponse, DeviceStatus
)
from app.modules.subscriptions.limits import SubscriptionLimits, LimitExceeded
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class DeviceService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def count_devices(self, user_id: str) -> int:
        result = self.supabase.table("devices")\
            .select("id")\
            .eq("user_id", user_id)\
            .execute()
        return len(result.data or [])

    def _verify_zone(self, zone_id: str, user_id: str):
        zone_result = self.supabase.table("zones")\
            .select("id, user_id")\
            .eq("id", zone_id)\
            .limit(1)\
            .execute()
        if not zone_result.data:
            raise HTTPException(status_code=404, detail="Zone not found")
        if zone_result.data[0].get("user_id") != user_id:
            raise HTTPException(status_code=403, detail="Zone belongs to another user")

    def list_devices(
        self,
        user_id: str,
        zone_id: Optional[str] = None,
        status: Optional[DeviceStatus] = None
    ) -> List[DeviceResponse]:
        """List the user's devices, newest first"""
        try:
            query = self.supabase.table("devices")\
                .select("*")\
                .eq("user_id", user_id)
            if zone_id:
                query = query.eq("zone_id", zone_id)
            if status:
                query = query.eq("status", status.value)
            result = query.order("created_at", desc=True).execute()
            return [DeviceResponse(**device) for device in result.data]
        except Exception as e:
            logger.error(f"Error fetching devices: {e}")
            raise HTTPException(status_code=500, detail="Failed to load devices")

    def create_device(self, device_data: DeviceCreate, user_id: str, limits: SubscriptionLimits) -> DeviceResponse:
        """Register a device when the plan allows another one"""
        try:
            limits.enforce("devices", self.count_devices(user_id))
            if device_data.zone_id:
                self._verify_zone(device_data.zone_id, user_id)

            result = self.supabase.table("devices").insert({
                **device_data.model_dump(mode="json"),
                "user_id": user_id,
                "last_updated": datetime.now(timezone.utc).isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create device")

            logger.info(f"Device {result.data[0]['id']} registered for user {user_id}")
            return DeviceResponse(**result.data[0])
        except LimitExceeded as e:
            raise HTTPException(status_code=403, detail=str(e))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating device: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_device(self, device_id: str, device_data: DeviceUpdate, user_id: str) -> DeviceResponse:
        try:
            update_data = device_data.model_dump(mode="json", exclude_unset=True)
            if update_data.get("zone_id"):
                self._verify_zone(update_data["zone_id"], user_id)
            now = datetime.now(timezone.utc).isoformat()
            update_data["updated_at"] = now
            update_data["last_updated"] = now

            result = self.supabase.table("devices")\
                .update(update_data)\
                .eq("id", device_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Device not found")

            return DeviceResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating device: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_device_status(self, device_id: str, status: DeviceStatus, user_id: Optional[str] = None) -> DeviceResponse:
        """Set a device's status (used by the dashboard toggles and the automation engine).
        With user_id only a device owned by that user is touched."""
        try:
            now = datetime.now(timezone.utc).isoformat()
            query = self.supabase.table("devices")\
                .update({"status": status.value, "last_updated": now, "updated_at": now})\
                .eq("id", device_id)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Device not found")

            return DeviceResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating device status: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_device(self, device_id: str) -> bool:
        try:
            result = self.supabase.table("devices")\
                .delete()\
                .eq("id", device_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting device: {e}")
            raise HTTPException(status_code=500, detail=str(e))
