from datetime import datetime, timezone

import pytest

from app.modules.irrigation.schemas import ScheduleCreate
from app.modules.irrigation.service import next_run, schedule_from_row
from tests.conftest import FARMER_ID

# Wednesday
NOW = datetime(2024, 6, 5, 10, 30, tzinfo=timezone.utc)


def test_next_run_later_today():
    assert next_run("18:00", [3], NOW) == datetime(2024, 6, 5, 18, 0, tzinfo=timezone.utc)


def test_next_run_rolls_to_the_next_listed_day():
    assert next_run("06:00", [3, 5], NOW) == datetime(2024, 6, 7, 6, 0, tzinfo=timezone.utc)


def test_next_run_wraps_a_full_week():
    assert next_run("06:00", [3], NOW) == datetime(2024, 6, 12, 6, 0, tzinfo=timezone.utc)


def test_next_run_without_days():
    assert next_run("06:00", [], NOW) is None


def test_postgres_time_is_truncated():
    row = {
        "id": "s1", "user_id": FARMER_ID, "name": "Morning", "zone_id": "z1", "device_id": "d1",
        "start_time": "06:15:00", "duration": 20, "days_of_week": [1], "is_active": False,
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    schedule = schedule_from_row(row, NOW)
    assert schedule.start_time == "06:15"
    assert schedule.next_run is None


@pytest.mark.parametrize("start_time", ["24:00", "6:00", "noon"])
def test_invalid_start_time(start_time):
    with pytest.raises(ValueError):
        ScheduleCreate(name="x", zone_id="z", device_id="d", start_time=start_time, duration=10, days_of_week=[1])


def test_days_are_deduplicated_and_bounded():
    schedule = ScheduleCreate(name="x", zone_id="z", device_id="d", start_time="06:00", duration=10,
                              days_of_week=[5, 1, 5])
    assert schedule.days_of_week == [1, 5]
    with pytest.raises(ValueError):
        ScheduleCreate(name="x", zone_id="z", device_id="d", start_time="06:00", duration=10, days_of_week=[0])


class TestScheduleRoutes:
    def _payload(self, db, device_owner=FARMER_ID):
        zone = db.add("zones", {"user_id": FARMER_ID, "name": "North"})
        device = db.add("devices", {"user_id": device_owner, "name": "Valve", "type": "valve", "status": "offline"})
        return {
            "name": "Morning",
            "zone_id": zone["id"],
            "device_id": device["id"],
            "start_time": "06:00",
            "duration": 30,
            "days_of_week": [1, 3, 5],
        }

    def test_create_toggle_and_delete(self, client, db, subscribed_farmer):
        response = client.post("/api/v1/irrigation-schedules", json=self._payload(db))
        assert response.status_code == 201
        schedule = response.json()
        assert schedule["next_run"] is not None

        toggled = client.post(f"/api/v1/irrigation-schedules/{schedule['id']}/toggle").json()
        assert toggled["is_active"] is False
        assert toggled["next_run"] is None

        assert client.delete(f"/api/v1/irrigation-schedules/{schedule['id']}").status_code == 204
        assert client.get("/api/v1/irrigation-schedules").json() == []

    def test_foreign_device_is_refused(self, client, db, subscribed_farmer):
        response = client.post("/api/v1/irrigation-schedules", json=self._payload(db, device_owner="someone-else"))
        assert response.status_code == 403
        assert response.json()["detail"] == "Device belongs to another user"

    def test_zero_duration_is_rejected(self, client, db, subscribed_farmer):
        response = client.post("/api/v1/irrigation-schedules", json={**self._payload(db), "duration": 0})
        assert response.status_code == 422
