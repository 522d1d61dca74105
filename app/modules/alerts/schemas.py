from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertResponse(BaseModel):
    id: str
    user_id: str
    device_id: Optional[str] = None
    zone_id: Optional[str] = None
    title: str
    message: str
    severity: AlertSeverity
    is_read: bool = False
    timestamp: datetime


class UnreadCountResponse(BaseModel):
    unread: int
