from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.modules.zones.schemas import GeoLocation


class DeviceType(str, Enum):
    MOISTURE_SENSOR = "moisture_sensor"
    TEMPERATURE_SENSOR = "temperature_sensor"
    VALVE = "valve"
    PUMP = "pump"
    WEATHER_STATION = "weather_station"
    PH_SENSOR = "ph_sensor"
    LIGHT_SENSOR = "light_sensor"


class DeviceStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"
    ALERT = "alert"


class DeviceCreate(BaseModel):
    name: str = Field(min_length=1)
    type: DeviceType
    status: DeviceStatus = DeviceStatus.OFFLINE
    battery_level: Optional[int] = Field(default=None, ge=0, le=100)
    last_reading: Optional[float] = None
    location: Optional[GeoLocation] = None
    zone_id: Optional[str] = None


class DeviceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[DeviceType] = None
    status: Optional[DeviceStatus] = None
    battery_level: Optional[int] = Field(default=None, ge=0, le=100)
    location: Optional[GeoLocation] = None
    zone_id: Optional[str] = None


class DeviceStatusUpdate(BaseModel):
    status: DeviceStatus


class DeviceResponse(BaseModel):
    id: str
    user_id: str
    name: str
    type: DeviceType
    status: DeviceStatus
    battery_level: Optional[int] = None
    last_reading: Optional[float] = None
    last_updated: Optional[datetime] = None
    location: Optional[GeoLocation] = None
    zone_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
