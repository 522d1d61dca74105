import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest

from app.main import app
from app.modules.automation.engine import AutomationEngine, automation_engine_loop, compare, get_automation_engine
from app.modules.automation.schemas import AutomationRuleResponse, ComparisonOperator, RuleCondition
from tests.conftest import FARMER_ID

# Monday
NOW = datetime(2024, 6, 3, 7, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(db):
    return AutomationEngine(db, clock=lambda: NOW)


@pytest.fixture
def zone(db):
    return db.add("zones", {"user_id": FARMER_ID, "name": "North"})


@pytest.fixture
def probe(db, zone):
    return db.add("devices", {"user_id": FARMER_ID, "name": "Probe", "type": "moisture_sensor",
                              "status": "online", "zone_id": zone["id"]})


@pytest.fixture
def pump(db, zone):
    return db.add("devices", {"user_id": FARMER_ID, "name": "Pump", "type": "pump",
                              "status": "offline", "zone_id": zone["id"]})


def _rule(db, zone, condition, action, **extra):
    row = {
        "user_id": FARMER_ID,
        "name": "Dry soil",
        "zone_id": zone["id"],
        "condition": condition,
        "action": action,
        "is_active": True,
    }
    row.update(extra)
    return db.add("automation_rules", row)


@pytest.mark.parametrize("operator, value, expected", [
    (ComparisonOperator.LESS_THAN, 20, True),
    (ComparisonOperator.LESS_THAN, 30, False),
    (ComparisonOperator.GREATER_THAN, 31, True),
    (ComparisonOperator.EQUAL_TO, 30, True),
    (ComparisonOperator.NOT_EQUAL_TO, 30, False),
])
def test_compare(operator, value, expected):
    assert compare(value, operator, 30) is expected


def test_sensor_condition_requires_threshold():
    with pytest.raises(ValueError):
        RuleCondition(type="sensor_reading", sensorId="d1", operator="less_than")


def test_condition_accepts_snake_case_and_dumps_camel_case():
    condition = RuleCondition(type="time_based", time_of_day="06:30:00", days_of_week=[2, 1])
    assert condition.model_dump(by_alias=True, exclude_none=True) == {
        "type": "time_based", "timeOfDay": "06:30", "daysOfWeek": [1, 2]
    }


class TestEngine:
    def test_low_moisture_starts_pump_and_schedules_shutoff(self, engine, db, zone, probe, pump):
        db.add("sensor_readings", {"user_id": FARMER_ID, "device_id": probe["id"], "value": 22, "unit": "%"})
        _rule(db, zone,
              {"type": "sensor_reading", "sensorId": probe["id"], "operator": "less_than", "threshold": 30},
              {"type": "toggle_device", "deviceId": pump["id"], "duration": 15})

        summary = engine.run_once()

        assert summary == {"evaluated": 1, "triggered": 1, "failed": 0, "shutoffs": 0}
        assert next(d for d in db.rows("devices") if d["id"] == pump["id"])["status"] == "online"
        history = db.rows("automation_history")
        assert [(h["type"], h["status"], h["name"]) for h in history] == [("RULE_TRIGGER", "SUCCESS", "Rule Triggered")]
        assert "Threshold: 30.0%" in history[0]["description"]

        assert engine.process_shutoffs(NOW + timedelta(minutes=14)) == 0
        assert engine.process_shutoffs(NOW + timedelta(minutes=15)) == 1
        assert next(d for d in db.rows("devices") if d["id"] == pump["id"])["status"] == "offline"
        assert engine.pending_shutoffs == {}

    def test_condition_not_met_does_nothing(self, engine, db, zone, probe, pump):
        db.add("sensor_readings", {"user_id": FARMER_ID, "device_id": probe["id"], "value": 45, "unit": "%"})
        _rule(db, zone,
              {"type": "sensor_reading", "sensorId": probe["id"], "operator": "less_than", "threshold": 30},
              {"type": "toggle_device", "deviceId": pump["id"]})
        assert engine.run_once()["triggered"] == 0
        assert db.rows("automation_history") == []

    def test_no_reading_does_nothing(self, engine, db, zone, probe, pump):
        _rule(db, zone,
              {"type": "sensor_reading", "sensorId": probe["id"], "operator": "less_than", "threshold": 30},
              {"type": "toggle_device", "deviceId": pump["id"]})
        assert engine.run_once()["triggered"] == 0

    def test_inactive_rules_are_skipped(self, engine, db, zone, probe, pump):
        db.add("sensor_readings", {"user_id": FARMER_ID, "device_id": probe["id"], "value": 1, "unit": "%"})
        _rule(db, zone,
              {"type": "sensor_reading", "sensorId": probe["id"], "operator": "less_than", "threshold": 30},
              {"type": "toggle_device", "deviceId": pump["id"]},
              is_active=False)
        assert engine.run_once()["evaluated"] == 0

    def test_time_rule_fires_once_per_minute(self, engine, db, zone):
        row = _rule(db, zone,
                    {"type": "time_based", "timeOfDay": "07:00", "daysOfWeek": [1]},
                    {"type": "send_notification", "value": "Check the greenhouse"})
        rule = AutomationRuleResponse(**row)

        assert engine.evaluate_rule(rule, NOW) is True
        assert engine.evaluate_rule(rule, NOW + timedelta(seconds=30)) is False
        assert engine.evaluate_rule(rule, NOW + timedelta(minutes=1)) is False
        assert engine.evaluate_rule(rule, NOW + timedelta(days=7)) is True

        notifications = db.rows("notifications")
        assert len(notifications) == 2
        assert notifications[0]["message"] == "Check the greenhouse"
        assert notifications[0]["category"] == "automation"

    def test_time_rule_ignores_other_days(self, engine, db, zone):
        row = _rule(db, zone,
                    {"type": "time_based", "timeOfDay": "07:00", "daysOfWeek": [2, 3]},
                    {"type": "send_notification"})
        assert engine.evaluate_rule(AutomationRuleResponse(**row), NOW) is False

    def test_unsupported_action_is_recorded_as_failure(self, engine, db, zone, pump):
        _rule(db, zone,
              {"type": "time_based", "timeOfDay": "08:00", "daysOfWeek": [1]},
              {"type": "set_value", "deviceId": pump["id"], "value": 50})
        engine.clock = lambda: datetime(2024, 6, 3, 8, 0, tzinfo=engine.tz)

        summary = engine.run_once()

        assert summary["failed"] == 1
        history = db.rows("automation_history")
        assert history[0]["status"] == "FAILURE"
        assert history[0]["name"] == "Rule Failed"
        assert "not supported" in history[0]["details"]

    def test_weather_conditions_never_fire(self, engine, db, zone):
        _rule(db, zone, {"type": "weather_forecast"}, {"type": "send_notification"})
        assert engine.run_once() == {"evaluated": 1, "triggered": 0, "failed": 0, "shutoffs": 0}

    def test_run_can_be_limited_to_one_user(self, engine, db, zone):
        _rule(db, zone, {"type": "weather_forecast"}, {"type": "send_notification"}, user_id="someone-else")
        assert engine.run_once(user_id=FARMER_ID)["evaluated"] == 0

    def test_neighbours_device_is_never_switched(self, engine, db, zone):
        neighbour_pump = db.add("devices", {"user_id": "neighbour", "name": "Pump", "type": "pump",
                                            "status": "offline"})
        _rule(db, zone,
              {"type": "time_based", "timeOfDay": "08:00", "daysOfWeek": [1]},
              {"type": "toggle_device", "deviceId": neighbour_pump["id"], "duration": 10})
        engine.clock = lambda: datetime(2024, 6, 3, 8, 0, tzinfo=engine.tz)

        summary = engine.run_once()

        assert summary["triggered"] == 0
        assert summary["failed"] == 1
        assert db.rows("devices")[0]["status"] == "offline"
        assert engine.pending_shutoffs == {}
        assert db.rows("automation_history")[0]["status"] == "FAILURE"

    def test_neighbours_readings_do_not_trigger_rules(self, engine, db, zone, pump):
        neighbour_probe = db.add("devices", {"user_id": "neighbour", "name": "Probe", "type": "moisture_sensor",
                                             "status": "online"})
        db.add("sensor_readings", {"user_id": "neighbour", "device_id": neighbour_probe["id"], "value": 5})
        _rule(db, zone,
              {"type": "sensor_reading", "sensorId": neighbour_probe["id"], "operator": "less_than", "threshold": 30},
              {"type": "toggle_device", "deviceId": pump["id"]})

        assert engine.run_once()["triggered"] == 0
        assert next(d for d in db.rows("devices") if d["id"] == pump["id"])["status"] == "offline"


SENSOR_RULE = {
    "name": "Dry soil",
    "condition": {"type": "sensor_reading", "sensorId": "probe", "operator": "less_than", "threshold": 30},
    "action": {"type": "send_notification", "value": "Soil is dry"},
}


class TestRuleRoutes:
    def test_create_returns_camel_case_condition(self, client, subscribed_farmer, zone, probe):
        condition = {**SENSOR_RULE["condition"], "sensorId": probe["id"]}
        response = client.post("/api/v1/automation/rules",
                               json={**SENSOR_RULE, "zone_id": zone["id"], "condition": condition})
        assert response.status_code == 201
        assert response.json()["condition"]["sensorId"] == probe["id"]
        assert [r["name"] for r in client.get("/api/v1/automation/rules").json()] == ["Dry soil"]

    def test_rule_cannot_target_a_neighbours_device(self, client, db, subscribed_farmer, zone, probe):
        neighbour_pump = db.add("devices", {"user_id": "neighbour", "name": "Pump", "type": "pump"})
        condition = {**SENSOR_RULE["condition"], "sensorId": probe["id"]}
        payload = {**SENSOR_RULE, "zone_id": zone["id"], "condition": condition,
                   "action": {"type": "toggle_device", "deviceId": neighbour_pump["id"]}}

        response = client.post("/api/v1/automation/rules", json=payload)

        assert response.status_code == 403
        assert response.json()["detail"] == "Device belongs to another user"
        assert db.rows("automation_rules") == []

    def test_rule_cannot_watch_a_neighbours_sensor(self, client, db, subscribed_farmer, zone):
        neighbour_probe = db.add("devices", {"user_id": "neighbour", "name": "Probe", "type": "moisture_sensor"})
        condition = {**SENSOR_RULE["condition"], "sensorId": neighbour_probe["id"]}

        response = client.post("/api/v1/automation/rules",
                               json={**SENSOR_RULE, "zone_id": zone["id"], "condition": condition})

        assert response.status_code == 403
        assert response.json()["detail"] == "Sensor belongs to another user"

    def test_unknown_sensor_is_not_found(self, client, subscribed_farmer, zone):
        response = client.post("/api/v1/automation/rules", json={**SENSOR_RULE, "zone_id": zone["id"]})
        assert response.status_code == 404

    def test_update_cannot_retarget_a_neighbours_device(self, client, db, subscribed_farmer, zone, pump):
        neighbour_pump = db.add("devices", {"user_id": "neighbour", "name": "Pump", "type": "pump"})
        rule = _rule(db, zone, SENSOR_RULE["condition"], {"type": "toggle_device", "deviceId": pump["id"]})

        response = client.put(f"/api/v1/automation/rules/{rule['id']}",
                              json={"action": {"type": "toggle_device", "deviceId": neighbour_pump["id"]}})

        assert response.status_code == 403
        assert db.rows("automation_rules")[0]["action"]["deviceId"] == pump["id"]

    def test_plan_without_automation_cannot_create_rules(self, client, db, farmer, zone):
        plan = db.add("subscription_plans", {"name": "Starter", "price": 5, "billing_interval": "month",
                                             "features": {"max_zones": 1, "automation": False}})
        db.add("user_subscriptions", {"user_id": FARMER_ID, "plan_id": plan["id"], "status": "active"})
        response = client.post("/api/v1/automation/rules", json={**SENSOR_RULE, "zone_id": zone["id"]})
        assert response.status_code == 403

    def test_plan_without_automation_cannot_activate_rules(self, client, db, farmer, zone):
        plan = db.add("subscription_plans", {"name": "Starter", "price": 5, "billing_interval": "month",
                                             "features": {"max_zones": 1, "automation": False}})
        db.add("user_subscriptions", {"user_id": FARMER_ID, "plan_id": plan["id"], "status": "active"})
        rule = _rule(db, zone, SENSOR_RULE["condition"], SENSOR_RULE["action"], is_active=False)
        assert client.post(f"/api/v1/automation/rules/{rule['id']}/toggle").status_code == 403

    def test_toggle_and_delete(self, client, db, subscribed_farmer, zone):
        rule = _rule(db, zone, SENSOR_RULE["condition"], SENSOR_RULE["action"])
        toggled = client.post(f"/api/v1/automation/rules/{rule['id']}/toggle")
        assert toggled.json()["is_active"] is False
        assert client.delete(f"/api/v1/automation/rules/{rule['id']}").status_code == 204
        assert db.rows("automation_rules") == []

    def test_invalid_action_is_rejected(self, client, subscribed_farmer, zone):
        payload = {**SENSOR_RULE, "zone_id": zone["id"], "action": {"type": "toggle_device"}}
        assert client.post("/api/v1/automation/rules", json=payload).status_code == 422

    def test_history_add_list_and_clear(self, client, subscribed_farmer, zone):
        entry = {"name": "Manual watering", "description": "Opened valve by hand", "zone_id": zone["id"]}
        created = client.post("/api/v1/automation/history", json=entry)
        assert created.status_code == 201
        assert created.json()["type"] == "MANUAL"
        assert len(client.get("/api/v1/automation/history").json()) == 1

        cleared = client.delete("/api/v1/automation/history").json()
        assert cleared["removed"] == 1
        assert client.get("/api/v1/automation/history").json() == []

    def test_run_now(self, client, db, subscribed_farmer, zone):
        _rule(db, zone, {"type": "weather_forecast"}, {"type": "send_notification"})
        app.dependency_overrides[get_automation_engine] = lambda: AutomationEngine(db, clock=lambda: NOW)
        response = client.post("/api/v1/automation/run")
        assert response.status_code == 200
        assert response.json()["evaluated"] == 1


class StopLoop(Exception):
    pass


def test_engine_loop_runs_passes_off_the_event_loop(monkeypatch):
    pass_threads = []

    class RecordingEngine:
        def run_once(self):
            pass_threads.append(threading.get_ident())
            return {"evaluated": 0, "triggered": 0, "failed": 0, "shutoffs": 0}

    async def stop_after_first_pass(seconds):
        raise StopLoop

    monkeypatch.setattr("app.modules.automation.engine.get_automation_engine", lambda: RecordingEngine())
    monkeypatch.setattr("app.modules.automation.engine.asyncio.sleep", stop_after_first_pass)

    with pytest.raises(StopLoop):
        asyncio.run(automation_engine_loop())

    assert len(pass_threads) == 1
    assert pass_threads[0] != threading.get_ident()
