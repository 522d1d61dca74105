from fastapi import APIRouter, Depends, HTTPException, Request
from app.config import settings
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.subscriptions.schemas import (
    PlanCreate, PlanUpdate, PlanResponse, UserSubscriptionResponse, SubscriptionCheckResponse,
    PortalSessionResponse, LimitsResponse, FarmerResponse,
    SubscriptionRequestCreate, SubscriptionRequestDeny, SubscriptionRequestResponse
)
from app.modules.subscriptions.service import PlanService, FarmerSubscriptionService, SubscriptionRequestService
from app.modules.subscriptions.billing import BillingService, StripeGateway
from app.modules.subscriptions.limits import SubscriptionLimits
from app.modules.zones.service import ZoneService
from app.modules.devices.service import DeviceService
from app.modules.crops.service import CropService
from app.core.dependencies import (
    get_current_user, get_current_profile, get_subscription_limits, require_permission,
    fetch_active_subscription, is_admin, _get_request_cache
)
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def get_plan_service(supabase: Client = Depends(get_supabase)) -> PlanService:
    return PlanService(supabase)


def get_farmer_service(supabase: Client = Depends(get_service_supabase)) -> FarmerSubscriptionService:
    return FarmerSubscriptionService(supabase)


def get_request_service(supabase: Client = Depends(get_supabase)) -> SubscriptionRequestService:
    return SubscriptionRequestService(supabase)


def get_stripe_gateway() -> StripeGateway:
    return StripeGateway()


def get_billing_service(
    supabase: Client = Depends(get_service_supabase),
    gateway: StripeGateway = Depends(get_stripe_gateway)
) -> BillingService:
    return BillingService(supabase, gateway)


# Plans

@router.get("/plans", response_model=List[PlanResponse])
async def list_plans(service: PlanService = Depends(get_plan_service)):
    """Public plan catalogue, cheapest first"""
    return service.list_plans()


@router.post("/plans", response_model=PlanResponse, status_code=201)
async def create_plan(
    plan_data: PlanCreate,
    user_data: Dict = Depends(require_permission("subscriptions:manage")),
    service: PlanService = Depends(get_plan_service)
):
    return service.create_plan(plan_data)


@router.put("/plans/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: str,
    plan_data: PlanUpdate,
    user_data: Dict = Depends(require_permission("subscriptions:manage")),
    service: PlanService = Depends(get_plan_service)
):
    return service.update_plan(plan_id, plan_data)


@router.delete("/plans/{plan_id}", status_code=204)
async def delete_plan(
    plan_id: str,
    user_data: Dict = Depends(require_permission("subscriptions:manage")),
    service: PlanService = Depends(get_plan_service)
):
    if not service.delete_plan(plan_id):
        raise HTTPException(status_code=404, detail="Plan not found")
    return None


# Current user

@router.get("/me", response_model=Optional[UserSubscriptionResponse])
async def get_my_subscription(
    request: Request,
    user_data: Dict = Depends(get_current_profile),
    supabase: Client = Depends(get_supabase)
):
    """Active (or trial) subscription with its plan; null when there is none"""
    return fetch_active_subscription(user_data["id"], supabase, _get_request_cache(request))


@router.get("/limits", response_model=LimitsResponse)
async def get_limits(
    user_data: Dict = Depends(get_current_profile),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    supabase: Client = Depends(get_supabase)
):
    user_id = user_data["id"]
    return LimitsResponse(
        limits=limits,
        usage={
            "zones": ZoneService(supabase).count_zones(user_id),
            "devices": DeviceService(supabase).count_devices(user_id),
            "crops": CropService(supabase).count_crops(user_id),
        }
    )


@router.post("/check", response_model=SubscriptionCheckResponse)
async def check_subscription(
    user_data: Dict = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service)
):
    """Reconcile the caller's subscription with Stripe"""
    return service.check_subscription(user_data["id"], user_data.get("email"))


@router.post("/portal", response_model=PortalSessionResponse)
async def customer_portal(
    request: Request,
    user_data: Dict = Depends(get_current_user),
    service: BillingService = Depends(get_billing_service)
):
    origin = request.headers.get("origin") or settings.frontend_url
    return PortalSessionResponse(url=service.create_portal_session(user_data["id"], origin))


# Farmer management

@router.get("/farmers", response_model=List[FarmerResponse])
async def list_farmers(
    user_data: Dict = Depends(require_permission("subscriptions:approve")),
    service: FarmerSubscriptionService = Depends(get_farmer_service)
):
    return service.list_farmers()


@router.post("/farmers/{farmer_id}/activate", response_model=UserSubscriptionResponse)
async def activate_farmer(
    farmer_id: str,
    user_data: Dict = Depends(require_permission("subscriptions:manage")),
    service: FarmerSubscriptionService = Depends(get_farmer_service)
):
    return service.activate(farmer_id)


@router.post("/farmers/{farmer_id}/deactivate")
async def deactivate_farmer(
    farmer_id: str,
    user_data: Dict = Depends(require_permission("subscriptions:manage")),
    service: FarmerSubscriptionService = Depends(get_farmer_service)
):
    deactivated = service.deactivate(farmer_id)
    return {"message": "Subscription deactivated successfully", "deactivated": deactivated}


# Subscription requests

@router.get("/requests", response_model=List[SubscriptionRequestResponse])
async def list_requests(
    user_data: Dict = Depends(require_permission("subscriptions:read")),
    service: SubscriptionRequestService = Depends(get_request_service)
):
    """Admins see every request, farmers their own"""
    if is_admin(user_data["profile"]):
        return service.list_requests()
    return service.list_requests(user_id=user_data["id"])


@router.post("/requests", response_model=SubscriptionRequestResponse, status_code=201)
async def create_request(
    request_data: SubscriptionRequestCreate,
    user_data: Dict = Depends(require_permission("subscriptions:read")),
    service: SubscriptionRequestService = Depends(get_request_service)
):
    return service.create_request(request_data, user_data["id"])


@router.post("/requests/{request_id}/approve", response_model=SubscriptionRequestResponse)
async def approve_request(
    request_id: str,
    user_data: Dict = Depends(require_permission("subscriptions:approve")),
    service: SubscriptionRequestService = Depends(get_request_service)
):
    return service.approve(request_id, user_data["id"])


@router.post("/requests/{request_id}/deny", response_model=SubscriptionRequestResponse)
async def deny_request(
    request_id: str,
    data: SubscriptionRequestDeny,
    user_data: Dict = Depends(require_permission("subscriptions:approve")),
    service: SubscriptionRequestService = Depends(get_request_service)
):
    return service.deny(request_id, user_data["id"], data.reason)
