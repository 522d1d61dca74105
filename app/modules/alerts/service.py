import logging
from supabase import Client
from app.modules.alerts.schemas import AlertResponse
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)

ALERTS_PAGE_SIZE = 20


class AlertService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_alerts(self, user_id: str, limit: int = ALERTS_PAGE_SIZE) -> List[AlertResponse]:
        """Newest alerts first"""
        try:
            result = self.supabase.table("alerts")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("timestamp", desc=True)\
                .limit(limit)\
                .execute()
            return [AlertResponse(**alert) for alert in result.data]
        except Exception as e:
            logger.error(f"Error fetching alerts: {e}")
            raise HTTPException(status_code=500, detail="Failed to load alerts")

    def mark_as_read(self, alert_id: str) -> AlertResponse:
        try:
            result = self.supabase.table("alerts")\
                .update({"is_read": True})\
                .eq("id", alert_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Alert not found")

            return AlertResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error marking alert as read: {e}")
            raise HTTPException(status_code=500, detail="Failed to update alert")

    def mark_all_as_read(self, user_id: str) -> int:
        try:
            result = self.supabase.table("alerts")\
                .update({"is_read": True})\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            logger.error(f"Error marking all alerts as read: {e}")
            raise HTTPException(status_code=500, detail="Failed to update alerts")

    def count_unread(self, user_id: str) -> int:
        try:
            result = self.supabase.table("alerts")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            logger.error(f"Error counting unread alerts: {e}")
            raise HTTPException(status_code=500, detail="Failed to count alerts")
