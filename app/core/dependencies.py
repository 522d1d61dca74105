"""
Core dependencies for route protection, role checks and subscription gating
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.subscriptions.limits import SubscriptionLimits, compute_limits
from app.config.permissions_config import ADMIN_ROLES, ROLE_SUPER_ADMIN, get_role_permissions
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

ACTIVE_SUBSCRIPTION_STATUSES = ["active", "trial"]

SUBSCRIPTION_REQUIRED = "Subscription required. This feature needs an active or trial subscription."


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for access data (profile, subscription, limits)."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(credentials.credentials)


def fetch_profile(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """Return the user_profiles row for user_id, or None. Uses request-scoped cache when provided."""
    if cache is not None and "profile" in cache:
        return cache["profile"]
    try:
        result = supabase.table("user_profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        profile = result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Error fetching user profile: {e}")
        profile = None
    if cache is not None:
        cache["profile"] = profile
    return profile


def fetch_active_subscription(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """Return the user's active (or trial) subscription joined with its plan, or None."""
    if cache is not None and "subscription" in cache:
        return cache["subscription"]
    try:
        result = supabase.table("user_subscriptions")\
            .select("*, plan:plan_id(*)")\
            .eq("user_id", user_id)\
            .in_("status", ACTIVE_SUBSCRIPTION_STATUSES)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        subscription = result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Error fetching subscription: {e}")
        subscription = None
    if cache is not None:
        cache["subscription"] = subscription
    return subscription


def is_admin(profile: Optional[Dict[str, Any]]) -> bool:
    """Admins and super admins"""
    return bool(profile) and profile.get("role") in ADMIN_ROLES


def is_super_admin(profile: Optional[Dict[str, Any]]) -> bool:
    return bool(profile) and profile.get("role") == ROLE_SUPER_ADMIN


def get_current_profile(
    request: Request,
    user_data: dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Current user merged with profile and role. 403 when the profile is missing."""
    cache = _get_request_cache(request)
    profile = fetch_profile(user_data["id"], supabase, cache)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User profile not found"
        )
    return {**user_data, "profile": profile, "role": profile.get("role")}


def require_roles(*roles: str):
    """Factory function to create a role check dependency"""
    def check_roles(user_data: dict = Depends(get_current_profile)) -> dict:
        if user_data["role"] not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient role. Required one of: {', '.join(roles)}"
            )
        return user_data
    return check_roles


def require_permission(required_permission: str):
    """Factory function to create permission check dependency"""
    def check_permission(user_data: dict = Depends(get_current_profile)) -> dict:
        if required_permission not in get_role_permissions(user_data["role"]):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required_permission}"
            )
        return user_data
    return check_permission


def get_subscription_limits(
    request: Request,
    user_data: dict = Depends(get_current_profile),
    supabase: Client = Depends(get_supabase)
) -> SubscriptionLimits:
    """Limits for the current user, derived from role and active plan"""
    cache = _get_request_cache(request)
    if "limits" in cache:
        return cache["limits"]
    subscription = None
    if not is_admin(user_data["profile"]):
        subscription = fetch_active_subscription(user_data["id"], supabase, cache)
    limits = compute_limits(user_data["profile"], subscription)
    cache["limits"] = limits
    return limits


def require_active_subscription(
    request: Request,
    user_data: dict = Depends(get_current_profile),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Admins bypass; everyone else needs an active or trial subscription"""
    if is_admin(user_data["profile"]):
        logger.debug(f"Admin user detected ({user_data['role']}), bypassing subscription check")
        return user_data
    subscription = fetch_active_subscription(user_data["id"], supabase, _get_request_cache(request))
    if not subscription or subscription.get("status") not in ACTIVE_SUBSCRIPTION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=SUBSCRIPTION_REQUIRED
        )
    return user_data


def require_feature(feature: str):
    """Factory for a dependency that refuses when the plan lacks a feature"""
    def check_feature(limits: SubscriptionLimits = Depends(get_subscription_limits)) -> SubscriptionLimits:
        if not limits.can_use_feature(feature):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Your current plan does not include {feature}. Please upgrade to use it."
            )
        return limits
    return check_feature


def check_resource_owner(table: str, resource_id: str, user_data: dict, supabase: Client, label: str) -> dict:
    """Return the row when the current user owns it (admins pass). 404 when missing, 403 otherwise."""
    try:
        result = supabase.table(table)\
            .select("*")\
            .eq("id", resource_id)\
            .limit(1)\
            .execute()
    except Exception as e:
        logger.error(f"Error loading {table} {resource_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    if not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found"
        )
    row = result.data[0]
    if row.get("user_id") != user_data["id"] and not is_admin(user_data.get("profile")):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have access to this {label.lower()}"
        )
    return row
