import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.zones.schemas import (
    ZoneCreate, ZoneUpdate, ZoneResponse, ZoneWithDevicesResponse
)
from app.modules.subscriptions.limits import SubscriptionLimits, LimitExceeded
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ZoneService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def count_zones(self, user_id: str) -> int:
        result = self.supabase.table("zones")\
            .select("id")\
            .eq("user_id", user_id)\
            .execute()
        return len(result.data or [])

    def list_zones(self, user_id: str) -> List[ZoneResponse]:
        """List the user's zones, newest first"""
        try:
            result = self.supabase.table("zones")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [ZoneResponse(**zone) for zone in result.data]
        except Exception as e:
            logger.error(f"Error fetching zones: {e}")
            raise HTTPException(status_code=500, detail="Failed to load zones")

    def create_zone(self, zone_data: ZoneCreate, user_id: str, limits: SubscriptionLimits) -> ZoneResponse:
        """Create a zone when the plan allows another one"""
        try:
            limits.enforce("zones", self.count_zones(user_id))

            result = self.supabase.table("zones").insert({
                **zone_data.model_dump(mode="json"),
                "user_id": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create zone")

            return ZoneResponse(**result.data[0])
        except LimitExceeded as e:
            raise HTTPException(status_code=403, detail=str(e))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating zone: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_zone(self, zone_id: str, zone_data: ZoneUpdate) -> ZoneResponse:
        try:
            update_data = zone_data.model_dump(mode="json", exclude_unset=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("zones")\
                .update(update_data)\
                .eq("id", zone_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Zone not found")

            return ZoneResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating zone: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_zone(self, zone_id: str) -> bool:
        try:
            result = self.supabase.table("zones")\
                .delete()\
                .eq("id", zone_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting zone: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_zone_with_devices(self, zone: dict) -> ZoneWithDevicesResponse:
        """Attach the zone's devices to an already loaded zone row"""
        try:
            devices_result = self.supabase.table("devices")\
                .select("*")\
                .eq("zone_id", zone["id"])\
                .order("created_at", desc=True)\
                .execute()

            zone_data = dict(zone)
            zone_data["devices"] = devices_result.data if devices_result.data else []

            return ZoneWithDevicesResponse(**zone_data)
        except Exception as e:
            logger.error(f"Error fetching zone devices: {e}")
            raise HTTPException(status_code=500, detail=str(e))
