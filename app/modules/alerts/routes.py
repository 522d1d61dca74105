from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.alerts.schemas import AlertResponse, UnreadCountResponse
from app.modules.alerts.service import AlertService, ALERTS_PAGE_SIZE
from app.core.dependencies import require_permission, require_active_subscription, check_resource_owner
from supabase import Client
from typing import List, Dict

router = APIRouter(
    prefix="/alerts",
    tags=["alerts"],
    dependencies=[Depends(require_active_subscription)],
)


def get_alert_service(supabase: Client = Depends(get_supabase)) -> AlertService:
    return AlertService(supabase)


@router.get("", response_model=List[AlertResponse])
async def list_alerts(
    limit: int = ALERTS_PAGE_SIZE,
    user_data: Dict = Depends(require_permission("alerts:read")),
    service: AlertService = Depends(get_alert_service)
):
    return service.list_alerts(user_data["id"], limit=min(max(limit, 1), ALERTS_PAGE_SIZE))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_data: Dict = Depends(require_permission("alerts:read")),
    service: AlertService = Depends(get_alert_service)
):
    return UnreadCountResponse(unread=service.count_unread(user_data["id"]))


@router.post("/read-all")
async def mark_all_as_read(
    user_data: Dict = Depends(require_permission("alerts:update")),
    service: AlertService = Depends(get_alert_service)
):
    updated = service.mark_all_as_read(user_data["id"])
    return {"message": "All alerts marked as read", "updated": updated}


@router.post("/{alert_id}/read", response_model=AlertResponse)
async def mark_as_read(
    alert_id: str,
    user_data: Dict = Depends(require_permission("alerts:update")),
    service: AlertService = Depends(get_alert_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("alerts", alert_id, user_data, supabase, "Alert")
    return service.mark_as_read(alert_id)
