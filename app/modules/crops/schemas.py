from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime, date


class GrowthStage(str, Enum):
    PLANTING = "planting"
    GERMINATION = "germination"
    VEGETATIVE = "vegetative"
    FLOWERING = "flowering"
    FRUITING = "fruiting"
    HARVEST = "harvest"


class IdealRange(BaseModel):
    min: float
    max: float

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min > self.max:
            raise ValueError("min must not be greater than max")
        return self


class CropCreate(BaseModel):
    name: str = Field(min_length=1)
    variety: Optional[str] = None
    zone_id: str
    planting_date: date
    harvest_date: Optional[date] = None
    growth_stage: GrowthStage = GrowthStage.PLANTING
    ideal_moisture: IdealRange
    ideal_temperature: IdealRange
    notes: Optional[str] = None
    plant_spacing: Optional[float] = Field(default=None, gt=0)
    seed_source: Optional[str] = None
    estimated_yield: Optional[float] = Field(default=None, ge=0)
    growth_days: Optional[int] = Field(default=None, gt=0)
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.harvest_date and self.harvest_date < self.planting_date:
            raise ValueError("harvest_date must not be before planting_date")
        return self


class CropUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    variety: Optional[str] = None
    zone_id: Optional[str] = None
    planting_date: Optional[date] = None
    harvest_date: Optional[date] = None
    growth_stage: Optional[GrowthStage] = None
    ideal_moisture: Optional[IdealRange] = None
    ideal_temperature: Optional[IdealRange] = None
    notes: Optional[str] = None
    plant_spacing: Optional[float] = Field(default=None, gt=0)
    seed_source: Optional[str] = None
    estimated_yield: Optional[float] = Field(default=None, ge=0)
    growth_days: Optional[int] = Field(default=None, gt=0)
    image_url: Optional[str] = None


class CropFilter(BaseModel):
    growth_stage: Optional[GrowthStage] = None
    zone_id: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CropResponse(BaseModel):
    id: str
    user_id: str
    name: str
    variety: Optional[str] = None
    zone_id: str
    zone_name: Optional[str] = None
    planting_date: date
    harvest_date: Optional[date] = None
    growth_stage: GrowthStage
    ideal_moisture: IdealRange
    ideal_temperature: IdealRange
    notes: Optional[str] = None
    plant_spacing: Optional[float] = None
    seed_source: Optional[str] = None
    estimated_yield: Optional[float] = None
    growth_days: Optional[int] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CropImageResponse(BaseModel):
    id: str
    crop_id: str
    user_id: str
    image_url: str
    capture_date: date
    notes: Optional[str] = None
    created_at: datetime
