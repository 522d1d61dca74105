import logging
from datetime import datetime, timezone
from supabase import Client
from app.modules.automation.schemas import (
    AutomationRuleCreate, AutomationRuleUpdate, AutomationRuleResponse,
    AutomationHistoryCreate, AutomationHistoryResponse, RuleAction, RuleCondition
)
from app.modules.subscriptions.limits import SubscriptionLimits
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

HISTORY_PAGE_SIZE = 50

AUTOMATION_REQUIRED = "Automation rules are not included in your current plan. Please upgrade to use them."


class AutomationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _verify_owned(self, table: str, resource_id: Optional[str], user_id: str, label: str):
        if not resource_id:
            return
        result = self.supabase.table(table)\
            .select("id, user_id")\
            .eq("id", resource_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        if result.data[0].get("user_id") != user_id:
            raise HTTPException(status_code=403, detail=f"{label} belongs to another user")

    def _verify_targets(self, user_id: str, zone_id: Optional[str] = None,
                        condition: Optional[RuleCondition] = None, action: Optional[RuleAction] = None):
        """Zone, condition sensor and action device must all belong to the rule owner"""
        self._verify_owned("zones", zone_id, user_id, "Zone")
        if condition is not None:
            self._verify_owned("devices", condition.sensor_id, user_id, "Sensor")
        if action is not None:
            self._verify_owned("devices", action.device_id, user_id, "Device")

    # Rules

    def list_rules(self, user_id: str) -> List[AutomationRuleResponse]:
        try:
            result = self.supabase.table("automation_rules")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [AutomationRuleResponse(**rule) for rule in result.data]
        except Exception as e:
            logger.error(f"Error fetching automation rules: {e}")
            raise HTTPException(status_code=500, detail="Failed to load automation rules")

    def create_rule(self, rule_data: AutomationRuleCreate, user_id: str) -> AutomationRuleResponse:
        try:
            self._verify_targets(user_id, rule_data.zone_id, rule_data.condition, rule_data.action)
            result = self.supabase.table("automation_rules").insert({
                **rule_data.model_dump(mode="json", by_alias=True, exclude_none=True),
                "user_id": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create automation rule")

            logger.info(f"Automation rule {result.data[0]['id']} created for user {user_id}")
            return AutomationRuleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating automation rule: {e}")
            raise HTTPException(status_code=500, detail="Failed to create automation rule")

    def update_rule(
        self,
        rule: dict,
        rule_data: AutomationRuleUpdate,
        limits: SubscriptionLimits
    ) -> AutomationRuleResponse:
        """Update a rule; activating it needs the automation feature"""
        try:
            update_data = rule_data.model_dump(mode="json", by_alias=True, exclude_unset=True)
            if update_data.get("is_active") and not rule.get("is_active") and not limits.can_use_feature("automation"):
                raise HTTPException(status_code=403, detail=AUTOMATION_REQUIRED)
            self._verify_targets(rule["user_id"], rule_data.zone_id, rule_data.condition, rule_data.action)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("automation_rules")\
                .update(update_data)\
                .eq("id", rule["id"])\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Automation rule not found")

            return AutomationRuleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating automation rule: {e}")
            raise HTTPException(status_code=500, detail="Failed to update automation rule")

    def toggle_rule(self, rule: dict, limits: SubscriptionLimits) -> AutomationRuleResponse:
        return self.update_rule(rule, AutomationRuleUpdate(is_active=not rule.get("is_active", False)), limits)

    def delete_rule(self, rule_id: str) -> bool:
        try:
            result = self.supabase.table("automation_rules")\
                .delete()\
                .eq("id", rule_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting automation rule: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete automation rule")

    # History

    def list_history(self, user_id: str, limit: int = HISTORY_PAGE_SIZE) -> List[AutomationHistoryResponse]:
        try:
            result = self.supabase.table("automation_history")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("timestamp", desc=True)\
                .limit(limit)\
                .execute()
            return [AutomationHistoryResponse(**entry) for entry in result.data]
        except Exception as e:
            logger.error(f"Error fetching automation history: {e}")
            raise HTTPException(status_code=500, detail="Failed to load automation history")

    def add_history_entry(self, entry: AutomationHistoryCreate, user_id: str) -> AutomationHistoryResponse:
        try:
            result = self.supabase.table("automation_history").insert({
                **entry.model_dump(mode="json"),
                "user_id": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add history entry")

            return AutomationHistoryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding history entry: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def clear_history(self, user_id: str) -> int:
        """Delete the user's history; returns the number of removed rows"""
        try:
            result = self.supabase.table("automation_history")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            logger.error(f"Error clearing automation history: {e}")
            raise HTTPException(status_code=500, detail="Failed to clear history")
