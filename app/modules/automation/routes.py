from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.automation.schemas import (
    AutomationRuleCreate, AutomationRuleUpdate, AutomationRuleResponse,
    AutomationHistoryCreate, AutomationHistoryResponse, AutomationRunResponse
)
from app.modules.automation.service import AutomationService, HISTORY_PAGE_SIZE
from app.modules.automation.engine import AutomationEngine, get_automation_engine
from app.modules.subscriptions.limits import SubscriptionLimits
from app.core.dependencies import (
    require_permission, require_active_subscription, require_feature,
    get_subscription_limits, check_resource_owner
)
from supabase import Client
from typing import List, Dict

router = APIRouter(
    prefix="/automation",
    tags=["automation"],
    dependencies=[Depends(require_active_subscription)],
)


def get_automation_service(supabase: Client = Depends(get_supabase)) -> AutomationService:
    return AutomationService(supabase)


@router.get("/rules", response_model=List[AutomationRuleResponse])
async def list_rules(
    user_data: Dict = Depends(require_permission("automation:read")),
    service: AutomationService = Depends(get_automation_service)
):
    return service.list_rules(user_data["id"])


@router.post(
    "/rules",
    response_model=AutomationRuleResponse,
    status_code=201,
    dependencies=[Depends(require_feature("automation"))],
)
async def create_rule(
    rule_data: AutomationRuleCreate,
    user_data: Dict = Depends(require_permission("automation:create")),
    service: AutomationService = Depends(get_automation_service)
):
    return service.create_rule(rule_data, user_data["id"])


@router.get("/rules/{rule_id}", response_model=AutomationRuleResponse)
async def get_rule(
    rule_id: str,
    user_data: Dict = Depends(require_permission("automation:read")),
    supabase: Client = Depends(get_supabase)
):
    return AutomationRuleResponse(
        **check_resource_owner("automation_rules", rule_id, user_data, supabase, "Automation rule")
    )


@router.put("/rules/{rule_id}", response_model=AutomationRuleResponse)
async def update_rule(
    rule_id: str,
    rule_data: AutomationRuleUpdate,
    user_data: Dict = Depends(require_permission("automation:update")),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    service: AutomationService = Depends(get_automation_service),
    supabase: Client = Depends(get_supabase)
):
    rule = check_resource_owner("automation_rules", rule_id, user_data, supabase, "Automation rule")
    return service.update_rule(rule, rule_data, limits)


@router.post("/rules/{rule_id}/toggle", response_model=AutomationRuleResponse)
async def toggle_rule(
    rule_id: str,
    user_data: Dict = Depends(require_permission("automation:update")),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    service: AutomationService = Depends(get_automation_service),
    supabase: Client = Depends(get_supabase)
):
    rule = check_resource_owner("automation_rules", rule_id, user_data, supabase, "Automation rule")
    return service.toggle_rule(rule, limits)


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: str,
    user_data: Dict = Depends(require_permission("automation:delete")),
    service: AutomationService = Depends(get_automation_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("automation_rules", rule_id, user_data, supabase, "Automation rule")
    service.delete_rule(rule_id)
    return None


@router.get("/history", response_model=List[AutomationHistoryResponse])
async def list_history(
    limit: int = HISTORY_PAGE_SIZE,
    user_data: Dict = Depends(require_permission("automation:read")),
    service: AutomationService = Depends(get_automation_service)
):
    return service.list_history(user_data["id"], limit=min(max(limit, 1), HISTORY_PAGE_SIZE))


@router.post("/history", response_model=AutomationHistoryResponse, status_code=201)
async def add_history_entry(
    entry: AutomationHistoryCreate,
    user_data: Dict = Depends(require_permission("automation:create")),
    service: AutomationService = Depends(get_automation_service)
):
    return service.add_history_entry(entry, user_data["id"])


@router.delete("/history")
async def clear_history(
    user_data: Dict = Depends(require_permission("automation:delete")),
    service: AutomationService = Depends(get_automation_service)
):
    removed = service.clear_history(user_data["id"])
    return {"message": "History cleared successfully", "removed": removed}


@router.post("/run", response_model=AutomationRunResponse)
def run_automation(
    user_data: Dict = Depends(require_permission("automation:run")),
    engine: AutomationEngine = Depends(get_automation_engine)
):
    """Evaluate the caller's active rules now instead of waiting for the next tick"""
    return engine.run_once(user_id=user_data["id"])
