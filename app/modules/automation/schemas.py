from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
from datetime import datetime
from app.modules.irrigation.schemas import normalize_time_of_day, normalize_days


class ConditionType(str, Enum):
    SENSOR_READING = "sensor_reading"
    TIME_BASED = "time_based"
    WEATHER_FORECAST = "weather_forecast"


class ComparisonOperator(str, Enum):
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    EQUAL_TO = "equal_to"
    NOT_EQUAL_TO = "not_equal_to"


class ActionType(str, Enum):
    TOGGLE_DEVICE = "toggle_device"
    SET_VALUE = "set_value"
    SEND_NOTIFICATION = "send_notification"


class HistoryType(str, Enum):
    RULE_TRIGGER = "RULE_TRIGGER"
    SCHEDULE = "SCHEDULE"
    MANUAL = "MANUAL"


class HistoryStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    PENDING = "PENDING"


class RuleCondition(BaseModel):
    """Stored as camelCase JSON; snake_case is accepted on input"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ConditionType
    sensor_id: Optional[str] = None
    threshold: Optional[float] = None
    operator: Optional[ComparisonOperator] = None
    time_of_day: Optional[str] = None
    days_of_week: Optional[List[int]] = None

    @field_validator("time_of_day")
    @classmethod
    def check_time(cls, value):
        return normalize_time_of_day(value) if value is not None else value

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, value):
        return normalize_days(value) if value is not None else value

    @model_validator(mode="after")
    def check_required_fields(self):
        if self.type == ConditionType.SENSOR_READING:
            if not self.sensor_id or self.operator is None or self.threshold is None:
                raise ValueError("sensor_reading conditions need sensorId, operator and threshold")
        if self.type == ConditionType.TIME_BASED:
            if not self.time_of_day or not self.days_of_week:
                raise ValueError("time_based conditions need timeOfDay and daysOfWeek")
        return self


class RuleAction(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ActionType
    device_id: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    value: Optional[Any] = None

    @model_validator(mode="after")
    def check_device(self):
        if self.type in (ActionType.TOGGLE_DEVICE, ActionType.SET_VALUE) and not self.device_id:
            raise ValueError(f"{self.type.value} actions need a deviceId")
        return self


class AutomationRuleCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    zone_id: str
    condition: RuleCondition
    action: RuleAction
    is_active: bool = True


class AutomationRuleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    zone_id: Optional[str] = None
    condition: Optional[RuleCondition] = None
    action: Optional[RuleAction] = None
    is_active: Optional[bool] = None


class AutomationRuleResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    zone_id: str
    condition: RuleCondition
    action: RuleAction
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class AutomationHistoryCreate(BaseModel):
    type: HistoryType = HistoryType.MANUAL
    name: str = Field(min_length=1)
    description: str
    status: HistoryStatus = HistoryStatus.SUCCESS
    zone_id: str
    device_id: Optional[str] = None
    details: Optional[str] = None


class AutomationHistoryResponse(BaseModel):
    id: str
    user_id: str
    type: HistoryType
    name: str
    description: str
    status: HistoryStatus
    zone_id: str
    device_id: Optional[str] = None
    details: Optional[str] = None
    timestamp: datetime


class AutomationRunResponse(BaseModel):
    evaluated: int
    triggered: int
    failed: int
    shutoffs: int
