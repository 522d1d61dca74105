from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from app.modules.irrigation.schemas import normalize_time_of_day


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TargetAudience(str, Enum):
    ALL = "all"
    FARMERS = "farmers"
    ADMINS = "admins"
    SPECIFIC = "specific"


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    title: str
    message: str
    type: str = NotificationType.INFO.value
    category: str = "general"
    data: Optional[Dict[str, Any]] = None
    is_read: bool = False
    is_push_sent: bool = False
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class NotificationPreferences(BaseModel):
    push_notifications_enabled: bool = True
    email_notifications_enabled: bool = True
    device_alerts: bool = True
    irrigation_alerts: bool = True
    system_alerts: bool = True
    maintenance_alerts: bool = True
    broadcast_messages: bool = True
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def check_quiet_hours(cls, value):
        return normalize_time_of_day(value) if value else None


class NotificationPreferencesResponse(NotificationPreferences):
    id: Optional[str] = None
    user_id: str


class BroadcastCreate(BaseModel):
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.INFO
    target_audience: TargetAudience = TargetAudience.ALL
    target_user_ids: Optional[List[str]] = None

    @model_validator(mode="after")
    def check_targets(self):
        if self.target_audience == TargetAudience.SPECIFIC and not self.target_user_ids:
            raise ValueError("target_user_ids is required when target_audience is 'specific'")
        return self


class BroadcastResponse(BaseModel):
    id: str
    created_by: str
    title: str
    message: str
    type: str
    target_audience: TargetAudience
    target_user_ids: Optional[List[str]] = None
    status: str
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    recipients_count: Optional[int] = None
    delivered_count: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class BroadcastResult(BaseModel):
    success: bool = True
    broadcast_id: str
    recipient_count: int
