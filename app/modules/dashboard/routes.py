from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.dashboard.schemas import DashboardStats, SystemHealth
from app.modules.dashboard.service import DashboardService
from app.core.dependencies import require_permission, require_active_subscription
from supabase import Client
from typing import Dict

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(require_active_subscription)],
)


def get_dashboard_service(supabase: Client = Depends(get_supabase)) -> DashboardService:
    return DashboardService(supabase)


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    user_data: Dict = Depends(require_permission("devices:read")),
    service: DashboardService = Depends(get_dashboard_service)
):
    return service.get_stats(user_data["id"])


@router.get("/health", response_model=SystemHealth)
async def get_health(
    user_data: Dict = Depends(require_permission("devices:read")),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Scores for the system health widget"""
    return service.get_health(user_data["id"])
