from pydantic import BaseModel
from typing import Optional, Dict
from datetime import datetime


class NextIrrigation(BaseModel):
    schedule_id: str
    name: str
    zone_id: str
    next_run: datetime


class DashboardStats(BaseModel):
    total_devices: int
    devices_by_status: Dict[str, int]
    active_pumps: int
    total_pumps: int
    average_soil_moisture: Optional[float] = None
    unread_alerts: int
    active_rules: int
    total_zones: int
    total_crops: int
    next_irrigation: Optional[NextIrrigation] = None


class SystemHealth(BaseModel):
    overall: int
    network: int
    uptime: int
    data_quality: int
    battery: int
    irrigation_efficiency: int
