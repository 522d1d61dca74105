from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class SensorReadingCreate(BaseModel):
    device_id: str
    value: float
    unit: str = Field(min_length=1)
    timestamp: Optional[datetime] = None


class SensorReadingResponse(BaseModel):
    id: str
    user_id: str
    device_id: str
    value: float
    unit: str
    timestamp: datetime
