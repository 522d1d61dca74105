import asyncio
import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo
from typing import Callable, Dict, List, Optional, Tuple
from supabase import Client
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.automation.schemas import (
    AutomationRuleResponse, ActionType, ComparisonOperator, ConditionType,
    HistoryStatus, HistoryType
)
from app.modules.devices.schemas import DeviceStatus
from app.modules.devices.service import DeviceService
from app.modules.sensor_readings.service import SensorReadingService

logger = logging.getLogger(__name__)


def compare(value: float, operator: ComparisonOperator, threshold: float) -> bool:
    if operator == ComparisonOperator.LESS_THAN:
        return value < threshold
    if operator == ComparisonOperator.GREATER_THAN:
        return value > threshold
    if operator == ComparisonOperator.EQUAL_TO:
        return value == threshold
    if operator == ComparisonOperator.NOT_EQUAL_TO:
        return value != threshold
    return False


class AutomationEngine:
    """
    Evaluates active automation rules and executes their actions.
    Keeps pending device shutoffs and the last minute each time-based rule fired,
    so one instance must live for as long as the background loop.
    """

    def __init__(self, supabase: Client, clock: Optional[Callable[[], datetime]] = None):
        self.supabase = supabase
        self.devices = DeviceService(supabase)
        self.readings = SensorReadingService(supabase)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.tz = ZoneInfo(settings.weather_timezone)
        # device_id -> (when it must be switched off again, owner id)
        self.pending_shutoffs: Dict[str, Tuple[datetime, str]] = {}
        # rule_id -> "YYYY-MM-DD HH:MM" of the last time-based trigger
        self.last_fired: Dict[str, str] = {}

    def now(self) -> datetime:
        return self.clock().astimezone(self.tz)

    def load_rules(self, user_id: Optional[str] = None) -> List[dict]:
        query = self.supabase.table("automation_rules")\
            .select("*")\
            .eq("is_active", True)
        if user_id:
            query = query.eq("user_id", user_id)
        return query.execute().data or []

    def condition_met(self, rule: AutomationRuleResponse, now: datetime) -> Optional[str]:
        """Return a description of why the rule fires, or None"""
        condition = rule.condition
        if condition.type == ConditionType.SENSOR_READING:
            reading = self.readings.get_latest_reading(condition.sensor_id, user_id=rule.user_id)
            if not reading:
                logger.debug(f"No sensor reading available for rule {rule.name}")
                return None
            if not compare(reading.value, condition.operator, condition.threshold):
                return None
            unit = reading.unit or ""
            return (
                f"sensor reading {reading.value} {condition.operator.value} {condition.threshold}"
                f" (Sensor: {reading.value}{unit}, Threshold: {condition.threshold}{unit})"
            )

        if condition.type == ConditionType.TIME_BASED:
            current_time = now.strftime("%H:%M")
            if condition.time_of_day != current_time or now.isoweekday() not in (condition.days_of_week or []):
                return None
            minute_key = now.strftime("%Y-%m-%d %H:%M")
            if self.last_fired.get(rule.id) == minute_key:
                return None
            self.last_fired[rule.id] = minute_key
            return f"scheduled at {current_time}"

        # weather_forecast conditions are not evaluated
        return None

    def execute_action(self, rule: AutomationRuleResponse, now: datetime):
        action = rule.action
        if action.type == ActionType.TOGGLE_DEVICE:
            self.devices.update_device_status(action.device_id, DeviceStatus.ONLINE, user_id=rule.user_id)
            if action.duration:
                self.pending_shutoffs[action.device_id] = (now + timedelta(minutes=action.duration), rule.user_id)
        elif action.type == ActionType.SEND_NOTIFICATION:
            self.supabase.table("notifications").insert({
                "user_id": rule.user_id,
                "title": f"Automation: {rule.name}",
                "message": str(action.value) if action.value is not None else (rule.description or rule.name),
                "type": "info",
                "category": "automation",
                "data": {"rule_id": rule.id, "zone_id": rule.zone_id},
            }).execute()
        else:
            raise ValueError(f"Action {action.type.value} is not supported by the automation engine")

    def record(self, rule: AutomationRuleResponse, status: HistoryStatus, description: str, details: Optional[str]):
        self.supabase.table("automation_history").insert({
            "user_id": rule.user_id,
            "type": HistoryType.RULE_TRIGGER.value,
            "name": "Rule Triggered" if status == HistoryStatus.SUCCESS else "Rule Failed",
            "description": description,
            "status": status.value,
            "zone_id": rule.zone_id,
            "device_id": rule.action.device_id,
            "details": details,
        }).execute()

    def evaluate_rule(self, rule: AutomationRuleResponse, now: Optional[datetime] = None) -> bool:
        """Evaluate one rule and execute its action when the condition holds. Raises on action failure."""
        if not rule.is_active:
            return False
        now = now or self.now()
        reason = self.condition_met(rule, now)
        if not reason:
            return False

        try:
            self.execute_action(rule, now)
        except Exception as e:
            logger.error(f"Automation rule {rule.id} failed to execute: {e}")
            self.record(rule, HistoryStatus.FAILURE, f'Rule "{rule.name}" failed to execute', str(e))
            raise

        logger.info(f"Automation rule {rule.id} triggered: {reason}")
        self.record(rule, HistoryStatus.SUCCESS, f'Rule "{rule.name}" triggered automatically - {reason}', None)
        return True

    def process_shutoffs(self, now: datetime) -> int:
        """Switch off devices whose toggle duration has elapsed"""
        done = 0
        for device_id, (due, owner_id) in list(self.pending_shutoffs.items()):
            if due > now:
                continue
            try:
                self.devices.update_device_status(device_id, DeviceStatus.OFFLINE, user_id=owner_id)
                del self.pending_shutoffs[device_id]
                done += 1
                logger.info(f"Device {device_id} turned off after its automation duration")
            except Exception as e:
                logger.error(f"Error turning off device {device_id}: {e}")
        return done

    def run_once(self, user_id: Optional[str] = None) -> Dict[str, int]:
        """One engine pass over active rules (optionally only one user's)"""
        now = self.now()
        summary = {"evaluated": 0, "triggered": 0, "failed": 0, "shutoffs": self.process_shutoffs(now)}
        for row in self.load_rules(user_id):
            summary["evaluated"] += 1
            try:
                if self.evaluate_rule(AutomationRuleResponse(**row), now):
                    summary["triggered"] += 1
            except Exception as e:
                summary["failed"] += 1
                logger.error(f"Error processing automation rule {row.get('id')}: {e}")
        return summary


_engine: Optional[AutomationEngine] = None


def get_automation_engine() -> AutomationEngine:
    """Process-wide engine on the service-role client"""
    global _engine
    if _engine is None:
        _engine = AutomationEngine(get_service_supabase())
    return _engine


async def automation_engine_loop():
    """Background task that periodically evaluates automation rules"""
    engine = get_automation_engine()
    while True:
        try:
            summary = await asyncio.to_thread(engine.run_once)
            if summary["triggered"] or summary["failed"]:
                logger.info(f"Automation pass: {summary}")
        except Exception as e:
            logger.error(f"Error in automation engine loop: {str(e)}")

        await asyncio.sleep(settings.automation_interval_seconds)
