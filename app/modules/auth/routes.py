from fastapi import APIRouter, Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    ProfileResponse, ProfileUpdate, MeResponse
)
from app.modules.auth.service import AuthService
from app.modules.subscriptions.limits import SubscriptionLimits
from app.core.dependencies import (
    get_auth_service, get_current_profile, get_subscription_limits,
    fetch_active_subscription, is_admin, is_super_admin, _get_request_cache
)
from app.config.permissions_config import get_role_permissions
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])

security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new farmer account"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    request: Request,
    current_user: Dict = Depends(get_current_profile),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    supabase: Client = Depends(get_supabase),
):
    """Current user, profile, active subscription, limits and permissions (dashboard session state)."""
    profile = current_user["profile"]
    subscription = fetch_active_subscription(current_user["id"], supabase, _get_request_cache(request))
    return MeResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        profile=ProfileResponse(**profile),
        role=current_user["role"],
        is_admin=is_admin(profile),
        is_super_admin=is_super_admin(profile),
        subscription=subscription,
        limits=limits,
        permissions=get_role_permissions(current_user["role"]),
    )


@router.put("/me/profile", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    current_user: Dict = Depends(get_current_profile),
    service: AuthService = Depends(get_auth_service)
):
    """Update display name, phone number or profile image"""
    return service.update_profile(current_user["id"], profile_data)
