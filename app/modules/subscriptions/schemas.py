from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime
from app.modules.subscriptions.limits import SubscriptionLimits


class BillingInterval(str, Enum):
    MONTH = "month"
    YEAR = "year"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIAL = "trial"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class PlanFeatures(BaseModel):
    # Display-only keys stored alongside the limits are kept
    model_config = ConfigDict(extra="allow")

    max_zones: int = Field(default=0, ge=0)
    max_devices: int = Field(default=0, ge=0)
    max_crops: int = Field(default=0, ge=0)
    advanced_features: bool = False
    automation: bool = False
    weather_api: bool = True
    maps_api: bool = True


class PlanCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0)
    billing_interval: BillingInterval = BillingInterval.MONTH
    features: PlanFeatures = Field(default_factory=PlanFeatures)


class PlanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    billing_interval: Optional[BillingInterval] = None
    features: Optional[PlanFeatures] = None


class PlanResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    billing_interval: str
    features: Dict[str, Any] = {}
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserSubscriptionResponse(BaseModel):
    id: str
    user_id: str
    plan_id: Optional[str] = None
    status: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    plan: Optional[PlanResponse] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class SubscriptionCheckResponse(BaseModel):
    subscribed: bool
    subscription: Optional[UserSubscriptionResponse] = None


class PortalSessionResponse(BaseModel):
    url: str


class LimitsResponse(BaseModel):
    limits: SubscriptionLimits
    usage: Dict[str, int]


class FarmerResponse(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: str
    subscription: Optional[UserSubscriptionResponse] = None
    created_at: Optional[datetime] = None


class SubscriptionRequestCreate(BaseModel):
    plan_id: str
    contact_submission_id: Optional[str] = None


class SubscriptionRequestDeny(BaseModel):
    reason: str = Field(min_length=1)


class SubscriptionRequestResponse(BaseModel):
    id: str
    user_id: str
    plan_id: str
    contact_submission_id: Optional[str] = None
    approval_status: ApprovalStatus
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    denial_reason: Optional[str] = None
    subscription_plans: Optional[Dict[str, Any]] = None
    contact_submissions: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
