import logging
from datetime import datetime, timedelta, timezone
from supabase import Client
from app.modules.subscriptions.schemas import (
    PlanCreate, PlanUpdate, PlanResponse, FarmerResponse, UserSubscriptionResponse,
    SubscriptionRequestCreate, SubscriptionRequestResponse, ApprovalStatus, SubscriptionStatus
)
from app.config.permissions_config import ROLE_FARMER
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

MANUAL_ACTIVATION_DAYS = 30

REQUEST_SELECT = (
    "*, subscription_plans(name, price, billing_interval), "
    "contact_submissions(full_name, email, phone_number)"
)


class PlanService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_plans(self) -> List[PlanResponse]:
        """All plans, cheapest first"""
        try:
            result = self.supabase.table("subscription_plans")\
                .select("*")\
                .order("price")\
                .execute()
            return [PlanResponse(**plan) for plan in result.data]
        except Exception as e:
            logger.error(f"Error fetching subscription plans: {e}")
            raise HTTPException(status_code=500, detail="Failed to load subscription plans")

    def create_plan(self, plan_data: PlanCreate) -> PlanResponse:
        try:
            result = self.supabase.table("subscription_plans")\
                .insert(plan_data.model_dump(mode="json"))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create plan")

            logger.info(f"Subscription plan {plan_data.name} created")
            return PlanResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating subscription plan: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_plan(self, plan_id: str, plan_data: PlanUpdate) -> PlanResponse:
        try:
            update_data = plan_data.model_dump(mode="json", exclude_unset=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("subscription_plans")\
                .update(update_data)\
                .eq("id", plan_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Plan not found")

            return PlanResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating subscription plan: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_plan(self, plan_id: str) -> bool:
        try:
            result = self.supabase.table("subscription_plans")\
                .delete()\
                .eq("id", plan_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting subscription plan: {e}")
            raise HTTPException(status_code=500, detail=str(e))


class FarmerSubscriptionService:
    """Super admin activation and deactivation of farmer subscriptions"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _active_subscription(self, user_id: str) -> Optional[dict]:
        result = self.supabase.table("user_subscriptions")\
            .select("*, plan:plan_id(*)")\
            .eq("user_id", user_id)\
            .eq("status", SubscriptionStatus.ACTIVE.value)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def list_farmers(self) -> List[FarmerResponse]:
        try:
            profiles = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("role", ROLE_FARMER)\
                .order("created_at", desc=True)\
                .execute()
            farmers = []
            for profile in profiles.data:
                subscription = self._active_subscription(profile["id"])
                farmers.append(FarmerResponse(
                    **profile,
                    subscription=UserSubscriptionResponse(**subscription) if subscription else None
                ))
            return farmers
        except Exception as e:
            logger.error(f"Error fetching farmers: {e}")
            raise HTTPException(status_code=500, detail="Failed to load farmers")

    def _get_farmer(self, farmer_id: str) -> dict:
        result = self.supabase.table("user_profiles")\
            .select("*")\
            .eq("id", farmer_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Farmer not found")
        return result.data[0]

    def activate(self, farmer_id: str) -> UserSubscriptionResponse:
        """Put the farmer on the cheapest plan for the next 30 days"""
        try:
            self._get_farmer(farmer_id)
            plans = self.supabase.table("subscription_plans")\
                .select("*")\
                .order("price")\
                .limit(1)\
                .execute()
            if not plans.data:
                raise HTTPException(status_code=404, detail="No subscription plans available")
            plan = plans.data[0]

            now = datetime.now(timezone.utc)
            end_date = (now + timedelta(days=MANUAL_ACTIVATION_DAYS)).isoformat()
            existing = self.supabase.table("user_subscriptions")\
                .select("id")\
                .eq("user_id", farmer_id)\
                .order("created_at", desc=True)\
                .limit(1)\
                .execute()

            if existing.data:
                result = self.supabase.table("user_subscriptions")\
                    .update({
                        "status": SubscriptionStatus.ACTIVE.value,
                        "plan_id": plan["id"],
                        "end_date": end_date,
                        "updated_at": now.isoformat()
                    })\
                    .eq("id", existing.data[0]["id"])\
                    .execute()
            else:
                result = self.supabase.table("user_subscriptions").insert({
                    "user_id": farmer_id,
                    "plan_id": plan["id"],
                    "status": SubscriptionStatus.ACTIVE.value,
                    "start_date": now.isoformat(),
                    "end_date": end_date
                }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to activate subscription")

            logger.info(f"Subscription activated for farmer {farmer_id} on plan {plan['name']}")
            return UserSubscriptionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error activating subscription: {e}")
            raise HTTPException(status_code=500, detail="Failed to activate subscription")

    def deactivate(self, farmer_id: str) -> int:
        try:
            self._get_farmer(farmer_id)
            result = self.supabase.table("user_subscriptions")\
                .update({
                    "status": SubscriptionStatus.INACTIVE.value,
                    "updated_at": datetime.now(timezone.utc).isoformat()
                })\
                .eq("user_id", farmer_id)\
                .eq("status", SubscriptionStatus.ACTIVE.value)\
                .execute()
            logger.info(f"Subscription deactivated for farmer {farmer_id}")
            return len(result.data or [])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deactivating subscription: {e}")
            raise HTTPException(status_code=500, detail="Failed to deactivate subscription")


class SubscriptionRequestService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_requests(self, user_id: Optional[str] = None) -> List[SubscriptionRequestResponse]:
        """All requests, or only user_id's when given"""
        try:
            query = self.supabase.table("subscription_requests").select(REQUEST_SELECT)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.order("created_at", desc=True).execute()
            return [SubscriptionRequestResponse(**request) for request in result.data]
        except Exception as e:
            logger.error(f"Error fetching subscription requests: {e}")
            raise HTTPException(status_code=500, detail="Failed to load subscription requests")

    def create_request(self, request_data: SubscriptionRequestCreate, user_id: str) -> SubscriptionRequestResponse:
        try:
            plan = self.supabase.table("subscription_plans")\
                .select("id")\
                .eq("id", request_data.plan_id)\
                .limit(1)\
                .execute()
            if not plan.data:
                raise HTTPException(status_code=404, detail="Plan not found")

            result = self.supabase.table("subscription_requests").insert({
                **request_data.model_dump(mode="json"),
                "user_id": user_id,
                "approval_status": ApprovalStatus.PENDING.value
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create subscription request")

            return SubscriptionRequestResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating subscription request: {e}")
            raise HTTPException(status_code=500, detail="Failed to create subscription request")

    def _decide(self, request_id: str, update: dict) -> SubscriptionRequestResponse:
        try:
            result = self.supabase.table("subscription_requests")\
                .update({**update, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", request_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Subscription request not found")

            return SubscriptionRequestResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating subscription request: {e}")
            raise HTTPException(status_code=500, detail="Failed to update subscription request")

    def approve(self, request_id: str, approver_id: str) -> SubscriptionRequestResponse:
        return self._decide(request_id, {
            "approval_status": ApprovalStatus.APPROVED.value,
            "approved_by": approver_id,
            "approved_at": datetime.now(timezone.utc).isoformat()
        })

    def deny(self, request_id: str, approver_id: str, reason: str) -> SubscriptionRequestResponse:
        return self._decide(request_id, {
            "approval_status": ApprovalStatus.DENIED.value,
            "approved_by": approver_id,
            "approved_at": datetime.now(timezone.utc).isoformat(),
            "denial_reason": reason
        })
