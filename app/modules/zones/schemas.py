from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class IrrigationStatus(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    SCHEDULED = "scheduled"
    PAUSED = "paused"


class GeoLocation(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ZoneCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    boundary_coordinates: List[GeoLocation] = []
    area_size: float = Field(default=0, ge=0)
    irrigation_status: IrrigationStatus = IrrigationStatus.INACTIVE
    soil_moisture_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    soil_type: Optional[str] = None
    crop_type: Optional[str] = None
    irrigation_method: Optional[str] = None
    notes: Optional[str] = None


class ZoneUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    boundary_coordinates: Optional[List[GeoLocation]] = None
    area_size: Optional[float] = Field(default=None, ge=0)
    irrigation_status: Optional[IrrigationStatus] = None
    soil_moisture_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    soil_type: Optional[str] = None
    crop_type: Optional[str] = None
    irrigation_method: Optional[str] = None
    notes: Optional[str] = None


class ZoneResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    boundary_coordinates: Optional[List[GeoLocation]] = None
    area_size: float = 0
    irrigation_status: IrrigationStatus = IrrigationStatus.INACTIVE
    soil_moisture_threshold: Optional[float] = None
    soil_type: Optional[str] = None
    crop_type: Optional[str] = None
    irrigation_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ZoneWithDevicesResponse(ZoneResponse):
    devices: List[dict] = []
