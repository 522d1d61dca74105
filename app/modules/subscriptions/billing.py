"""
Stripe reconciliation and customer portal.

StripeGateway is the only place that talks to Stripe; BillingService keeps
user_subscriptions in line with what Stripe reports and must run on the
service-role client because it writes subscription rows.
"""

import logging
import stripe
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import HTTPException
from supabase import Client
from app.config import settings

logger = logging.getLogger(__name__)


def _timestamp(seconds: Optional[int]) -> Optional[str]:
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


class StripeGateway:
    def __init__(self, api_key: Optional[str] = None, api_version: Optional[str] = None):
        self.api_key = api_key or settings.stripe_secret_key
        self.api_version = api_version or settings.stripe_api_version
        if not self.api_key:
            raise HTTPException(status_code=500, detail="STRIPE_SECRET_KEY is not set")

    def _options(self) -> Dict[str, Any]:
        return {"api_key": self.api_key, "stripe_version": self.api_version}

    def find_customer_id(self, email: str) -> Optional[str]:
        customers = stripe.Customer.list(email=email, limit=1, **self._options())
        return customers.data[0].id if customers.data else None

    def get_active_subscription(self, customer_id: str) -> Optional[Dict[str, Any]]:
        """The customer's active subscription flattened to the fields we store"""
        subscriptions = stripe.Subscription.list(customer=customer_id, status="active", limit=1, **self._options())
        if not subscriptions.data:
            return None
        subscription = subscriptions.data[0]
        price = subscription["items"]["data"][0]["price"]
        return {
            "id": subscription["id"],
            "current_period_start": subscription["current_period_start"],
            "current_period_end": subscription["current_period_end"],
            "price_id": price["id"],
            "unit_amount": price["unit_amount"],
        }

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=return_url,
            **self._options()
        )
        return session.url


class BillingService:
    def __init__(self, supabase: Client, gateway: StripeGateway):
        self.supabase = supabase
        self.gateway = gateway

    def _active_subscription(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("user_subscriptions")\
            .select("*, plan:plan_id(*)")\
            .eq("user_id", user_id)\
            .eq("status", "active")\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def check_subscription(self, user_id: str, email: Optional[str]) -> Dict[str, Any]:
        """Sync the user's subscription rows with Stripe and report whether one is active"""
        if not email:
            raise HTTPException(status_code=400, detail="User not authenticated or email not available")
        try:
            now = datetime.now(timezone.utc).isoformat()
            customer_id = self.gateway.find_customer_id(email)

            if not customer_id:
                self.supabase.table("user_subscriptions").upsert({
                    "user_id": user_id,
                    "plan_id": None,
                    "status": "inactive",
                    "updated_at": now
                }, on_conflict="user_id").execute()
                return {"subscribed": False}

            subscription = self.gateway.get_active_subscription(customer_id)
            if not subscription:
                self.supabase.table("user_subscriptions")\
                    .update({"status": "inactive", "end_date": now, "updated_at": now})\
                    .eq("user_id", user_id)\
                    .eq("status", "active")\
                    .execute()
                return {"subscribed": False}

            end_date = _timestamp(subscription["current_period_end"])
            existing = self.supabase.table("user_subscriptions")\
                .select("*")\
                .eq("stripe_subscription_id", subscription["id"])\
                .limit(1)\
                .execute()

            if existing.data:
                self.supabase.table("user_subscriptions")\
                    .update({"status": "active", "end_date": end_date, "updated_at": now})\
                    .eq("id", existing.data[0]["id"])\
                    .execute()
            else:
                plans = self.supabase.table("subscription_plans").select("*").execute()
                plan = next(
                    (p for p in plans.data or [] if round(float(p["price"]) * 100) == subscription["unit_amount"]),
                    None
                )
                if not plan:
                    raise HTTPException(status_code=500, detail="Could not match Stripe price to a plan")

                self.supabase.table("user_subscriptions")\
                    .update({"status": "inactive", "updated_at": now})\
                    .eq("user_id", user_id)\
                    .eq("status", "active")\
                    .execute()
                self.supabase.table("user_subscriptions").insert({
                    "user_id": user_id,
                    "plan_id": plan["id"],
                    "status": "active",
                    "stripe_customer_id": customer_id,
                    "stripe_subscription_id": subscription["id"],
                    "start_date": _timestamp(subscription["current_period_start"]),
                    "end_date": end_date
                }).execute()
                logger.info(f"Recorded Stripe subscription {subscription['id']} for user {user_id} on plan {plan['name']}")

            return {"subscribed": True, "subscription": self._active_subscription(user_id)}
        except HTTPException:
            raise
        except stripe.StripeError as e:
            logger.error(f"Stripe error while checking subscription: {e}")
            raise HTTPException(status_code=502, detail=str(e))
        except Exception as e:
            logger.error(f"Error checking subscription: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def create_portal_session(self, user_id: str, origin: str) -> str:
        """Billing portal URL for the user's Stripe customer"""
        result = self.supabase.table("user_subscriptions")\
            .select("stripe_customer_id")\
            .eq("user_id", user_id)\
            .eq("status", "active")\
            .limit(1)\
            .execute()
        if not result.data or not result.data[0].get("stripe_customer_id"):
            raise HTTPException(status_code=404, detail="No active subscription found")
        try:
            return self.gateway.create_portal_session(
                result.data[0]["stripe_customer_id"],
                f"{origin.rstrip('/')}/settings?tab=subscription"
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error while creating portal session: {e}")
            raise HTTPException(status_code=502, detail=str(e))
