from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Any
from datetime import datetime

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class PlatformConfigUpsert(BaseModel):
    value: str
    description: Optional[str] = None


class PlatformConfigResponse(BaseModel):
    id: str
    key: str
    value: str
    description: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class MeasurementUnit(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


# User settings are stored as camelCase JSON in platform_config
class NotificationSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool = True
    email: bool = True
    push: bool = False
    alert_threshold: int = Field(default=15, ge=0, le=100)


class PreferenceSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    measurement_unit: MeasurementUnit = MeasurementUnit.METRIC
    time_zone: str = "America/Los_Angeles"
    dark_mode: bool = False


class DataManagementSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    retention_period: int = Field(default=90, gt=0)


class UserSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    preferences: PreferenceSettings = Field(default_factory=PreferenceSettings)
    data_management: DataManagementSettings = Field(default_factory=DataManagementSettings)


class ApiKeyResponse(BaseModel):
    key: Optional[str] = None
    name: Optional[str] = None


class PlatformPageCreate(BaseModel):
    slug: str = Field(pattern=SLUG_PATTERN)
    title: str = Field(min_length=1)
    content: Any = None
    meta_description: Optional[str] = None
    is_published: bool = False


class PlatformPageUpdate(BaseModel):
    slug: Optional[str] = Field(default=None, pattern=SLUG_PATTERN)
    title: Optional[str] = Field(default=None, min_length=1)
    content: Any = None
    meta_description: Optional[str] = None
    is_published: Optional[bool] = None


class PlatformPageResponse(BaseModel):
    id: str
    slug: str
    title: str
    content: Any = None
    meta_description: Optional[str] = None
    is_published: bool
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
