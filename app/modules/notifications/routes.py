from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.notifications.schemas import (
    NotificationResponse, NotificationPreferences, NotificationPreferencesResponse,
    BroadcastCreate, BroadcastResponse, BroadcastResult
)
from app.modules.notifications.service import NotificationService, BroadcastService
from app.core.dependencies import require_permission, check_resource_owner
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


def get_broadcast_service(supabase: Client = Depends(get_service_supabase)) -> BroadcastService:
    return BroadcastService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    user_data: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    return service.list_notifications(user_data["id"], unread_only=unread_only)


@router.post("/read-all")
async def mark_all_as_read(
    user_data: Dict = Depends(require_permission("notifications:update")),
    service: NotificationService = Depends(get_notification_service)
):
    updated = service.mark_all_as_read(user_data["id"])
    return {"message": "All notifications marked as read", "updated": updated}


@router.get("/preferences", response_model=NotificationPreferencesResponse)
async def get_preferences(
    user_data: Dict = Depends(require_permission("notifications:read")),
    service: NotificationService = Depends(get_notification_service)
):
    return service.get_preferences(user_data["id"])


@router.put("/preferences", response_model=NotificationPreferencesResponse)
async def save_preferences(
    preferences: NotificationPreferences,
    user_data: Dict = Depends(require_permission("notifications:update")),
    service: NotificationService = Depends(get_notification_service)
):
    return service.save_preferences(user_data["id"], preferences)


@router.get("/broadcasts", response_model=List[BroadcastResponse])
async def list_broadcasts(
    user_data: Dict = Depends(require_permission("notifications:broadcast")),
    service: BroadcastService = Depends(get_broadcast_service)
):
    return service.list_broadcasts()


@router.post("/broadcasts", response_model=BroadcastResult, status_code=201)
async def send_broadcast(
    broadcast: BroadcastCreate,
    user_data: Dict = Depends(require_permission("notifications:broadcast")),
    service: BroadcastService = Depends(get_broadcast_service)
):
    """Send a message to every user in the target audience"""
    return service.send_broadcast(broadcast, user_data["id"])


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: str,
    user_data: Dict = Depends(require_permission("notifications:update")),
    service: NotificationService = Depends(get_notification_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("notifications", notification_id, user_data, supabase, "Notification")
    return service.mark_as_read(notification_id)


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str,
    user_data: Dict = Depends(require_permission("notifications:delete")),
    service: NotificationService = Depends(get_notification_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("notifications", notification_id, user_data, supabase, "Notification")
    service.delete_notification(notification_id)
    return None
