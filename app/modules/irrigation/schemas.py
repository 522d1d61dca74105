import re
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def normalize_time_of_day(value: str) -> str:
    """Accept HH:MM or HH:MM:SS (Postgres time) and keep HH:MM"""
    if not TIME_OF_DAY.match(value):
        raise ValueError("time must be in HH:MM format")
    return value[:5]


def normalize_days(days: List[int]) -> List[int]:
    if not days:
        raise ValueError("at least one day of week is required")
    if any(d < 1 or d > 7 for d in days):
        raise ValueError("days_of_week values must be between 1 (Monday) and 7 (Sunday)")
    return sorted(set(days))


class ScheduleCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    zone_id: str
    device_id: str
    start_time: str
    duration: int = Field(gt=0)
    days_of_week: List[int]
    is_active: bool = True

    @field_validator("start_time")
    @classmethod
    def check_time(cls, value):
        return normalize_time_of_day(value)

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, value):
        return normalize_days(value)


class ScheduleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    zone_id: Optional[str] = None
    device_id: Optional[str] = None
    start_time: Optional[str] = None
    duration: Optional[int] = Field(default=None, gt=0)
    days_of_week: Optional[List[int]] = None
    is_active: Optional[bool] = None

    @field_validator("start_time")
    @classmethod
    def check_time(cls, value):
        return normalize_time_of_day(value) if value is not None else value

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, value):
        return normalize_days(value) if value is not None else value


class ScheduleResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    zone_id: str
    device_id: str
    start_time: str
    duration: int
    days_of_week: List[int]
    is_active: bool
    next_run: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
