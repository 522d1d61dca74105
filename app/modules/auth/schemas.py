from pydantic import BaseModel, EmailStr
from typing import Optional, List, Dict, Any
from datetime import datetime
from app.modules.subscriptions.limits import SubscriptionLimits


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None
    phone_number: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class ProfileResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image: Optional[str] = None
    role: str = "farmer"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    profile_image: Optional[str] = None


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    profile: ProfileResponse
    role: str
    is_admin: bool
    is_super_admin: bool
    subscription: Optional[Dict[str, Any]] = None
    limits: SubscriptionLimits
    permissions: List[str]
