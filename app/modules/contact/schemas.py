from enum import Enum
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any
from datetime import datetime


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ContactSubmissionCreate(BaseModel):
    full_name: str = Field(min_length=1)
    phone_number: str = Field(min_length=1)
    email: EmailStr
    additional_notes: Optional[str] = None
    selected_plan_id: Optional[str] = None


class ContactSubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus


class ContactSubmissionResponse(BaseModel):
    id: str
    user_id: str
    full_name: str
    phone_number: str
    email: str
    additional_notes: Optional[str] = None
    selected_plan_id: Optional[str] = None
    status: SubmissionStatus
    subscription_plans: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ContactFormCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    subject: Optional[str] = None
    message: str = Field(min_length=1)
    phone: Optional[str] = None
    company: Optional[str] = None


class ContactFormUpdate(BaseModel):
    is_read: bool


class ContactFormResponse(BaseModel):
    id: str
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    phone: Optional[str] = None
    company: Optional[str] = None
    is_read: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None


class NewsletterSubscribe(BaseModel):
    email: EmailStr


class NewsletterResponse(BaseModel):
    id: str
    email: str
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None
