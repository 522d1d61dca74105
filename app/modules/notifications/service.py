import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.notifications.schemas import (
    NotificationResponse, NotificationPreferences, NotificationPreferencesResponse,
    BroadcastCreate, BroadcastResponse, BroadcastResult, TargetAudience
)
from app.config.permissions_config import ADMIN_ROLES, ROLE_FARMER
from typing import List
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_notifications(self, user_id: str, unread_only: bool = False) -> List[NotificationResponse]:
        try:
            query = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)
            if unread_only:
                query = query.eq("is_read", False)
            result = query.order("created_at", desc=True).execute()
            return [NotificationResponse(**notification) for notification in result.data]
        except Exception as e:
            logger.error(f"Error fetching notifications: {e}")
            raise HTTPException(status_code=500, detail="Failed to load notifications")

    def mark_as_read(self, notification_id: str) -> NotificationResponse:
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", notification_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Notification not found")

            return NotificationResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error marking notification as read: {e}")
            raise HTTPException(status_code=500, detail="Failed to update notification")

    def mark_all_as_read(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .update({"is_read": True, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            logger.error(f"Error marking all notifications as read: {e}")
            raise HTTPException(status_code=500, detail="Failed to update notifications")

    def delete_notification(self, notification_id: str) -> bool:
        try:
            result = self.supabase.table("notifications")\
                .delete()\
                .eq("id", notification_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting notification: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete notification")

    # Preferences

    def get_preferences(self, user_id: str) -> NotificationPreferencesResponse:
        """Stored preferences, or the all-enabled defaults when none were saved"""
        try:
            result = self.supabase.table("user_notification_preferences")\
                .select("*")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                return NotificationPreferencesResponse(user_id=user_id)
            return NotificationPreferencesResponse(**result.data[0])
        except Exception as e:
            logger.error(f"Error fetching notification preferences: {e}")
            raise HTTPException(status_code=500, detail="Failed to load notification preferences")

    def save_preferences(self, user_id: str, preferences: NotificationPreferences) -> NotificationPreferencesResponse:
        try:
            result = self.supabase.table("user_notification_preferences").upsert({
                **preferences.model_dump(mode="json"),
                "user_id": user_id,
                "updated_at": datetime.now(timezone.utc).isoformat()
            }, on_conflict="user_id").execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save notification preferences")

            return NotificationPreferencesResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving notification preferences: {e}")
            raise HTTPException(status_code=500, detail="Failed to save notification preferences")


class BroadcastService:
    """
    Admin broadcasts. Needs the service-role client: the fan-out writes
    notification rows owned by other users.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_broadcasts(self) -> List[BroadcastResponse]:
        try:
            result = self.supabase.table("broadcast_messages")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [BroadcastResponse(**broadcast) for broadcast in result.data]
        except Exception as e:
            logger.error(f"Error fetching broadcast messages: {e}")
            raise HTTPException(status_code=500, detail="Failed to load broadcast messages")

    def resolve_audience(self, broadcast: BroadcastCreate) -> List[str]:
        """User ids a broadcast is delivered to"""
        if broadcast.target_audience == TargetAudience.SPECIFIC:
            return list(dict.fromkeys(broadcast.target_user_ids or []))

        query = self.supabase.table("user_profiles").select("id")
        if broadcast.target_audience == TargetAudience.FARMERS:
            query = query.eq("role", ROLE_FARMER)
        elif broadcast.target_audience == TargetAudience.ADMINS:
            query = query.in_("role", ADMIN_ROLES)
        result = query.execute()
        return [row["id"] for row in result.data or []]

    def send_broadcast(self, broadcast: BroadcastCreate, created_by: str) -> BroadcastResult:
        """Store the broadcast and insert one notification per recipient"""
        try:
            now = datetime.now(timezone.utc).isoformat()
            created = self.supabase.table("broadcast_messages").insert({
                **broadcast.model_dump(mode="json"),
                "created_by": created_by,
                "status": "sent",
                "sent_at": now
            }).execute()

            if not created.data:
                raise HTTPException(status_code=500, detail="Failed to create broadcast message")

            broadcast_id = created.data[0]["id"]
            recipients = self.resolve_audience(broadcast)
            logger.info(f"Broadcasting {broadcast_id} to {len(recipients)} user(s) ({broadcast.target_audience.value})")

            notifications = [
                {
                    "user_id": user_id,
                    "title": broadcast.title,
                    "message": broadcast.message,
                    "type": broadcast.type.value,
                    "category": "broadcast",
                    "data": {"broadcast_id": broadcast_id}
                }
                for user_id in recipients
            ]

            if notifications:
                self.supabase.table("notifications").insert(notifications).execute()
                self.supabase.table("broadcast_messages")\
                    .update({
                        "recipients_count": len(notifications),
                        "delivered_count": len(notifications),
                        "updated_at": now
                    })\
                    .eq("id", broadcast_id)\
                    .execute()

            return BroadcastResult(broadcast_id=broadcast_id, recipient_count=len(notifications))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error in broadcast fan-out: {e}")
            raise HTTPException(status_code=500, detail=str(e))
