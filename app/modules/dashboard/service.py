import logging
from datetime import datetime
from supabase import Client
from app.modules.dashboard.schemas import DashboardStats, SystemHealth, NextIrrigation
from app.modules.devices.schemas import DeviceStatus, DeviceType
from app.modules.irrigation.service import next_run, farm_now
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

HEALTH_WEIGHTS = {
    "network": 0.3,
    "uptime": 0.2,
    "data_quality": 0.2,
    "battery": 0.15,
    "irrigation_efficiency": 0.15,
}

IRRIGATION_EFFICIENCY_WITH_ZONES = 85


def compute_system_health(devices: List[dict], zone_count: int) -> SystemHealth:
    """Health scores (0-100) derived from device status and battery levels"""
    if not devices:
        return SystemHealth(overall=0, network=0, uptime=0, data_quality=0, battery=0, irrigation_efficiency=0)

    online = sum(1 for d in devices if d.get("status") == DeviceStatus.ONLINE.value)
    network = online / len(devices) * 100
    uptime = network
    data_quality = min(network + 10, 100)
    batteries = [d["battery_level"] for d in devices if d.get("battery_level") is not None]
    battery = sum(batteries) / len(batteries) if batteries else 100
    irrigation = IRRIGATION_EFFICIENCY_WITH_ZONES if zone_count > 0 else 0

    overall = (
        HEALTH_WEIGHTS["network"] * network
        + HEALTH_WEIGHTS["uptime"] * uptime
        + HEALTH_WEIGHTS["data_quality"] * data_quality
        + HEALTH_WEIGHTS["battery"] * battery
        + HEALTH_WEIGHTS["irrigation_efficiency"] * irrigation
    )
    return SystemHealth(
        overall=round(overall),
        network=round(network),
        uptime=round(uptime),
        data_quality=round(data_quality),
        battery=round(battery),
        irrigation_efficiency=round(irrigation),
    )


def find_next_irrigation(schedules: List[dict], now: datetime) -> Optional[NextIrrigation]:
    upcoming = []
    for schedule in schedules:
        if not schedule.get("is_active"):
            continue
        run_at = next_run(str(schedule["start_time"])[:5], schedule.get("days_of_week") or [], now)
        if run_at:
            upcoming.append((run_at, schedule))
    if not upcoming:
        return None
    run_at, schedule = min(upcoming, key=lambda item: item[0])
    return NextIrrigation(
        schedule_id=schedule["id"],
        name=schedule["name"],
        zone_id=schedule["zone_id"],
        next_run=run_at,
    )


class DashboardService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _rows(self, table: str, user_id: str, columns: str = "*") -> List[dict]:
        result = self.supabase.table(table)\
            .select(columns)\
            .eq("user_id", user_id)\
            .execute()
        return result.data or []

    def get_stats(self, user_id: str) -> DashboardStats:
        try:
            devices = self._rows("devices", user_id)
            by_status = {status.value: 0 for status in DeviceStatus}
            for device in devices:
                if device.get("status") in by_status:
                    by_status[device["status"]] += 1

            pumps = [d for d in devices if d.get("type") == DeviceType.PUMP.value]
            moisture = [
                d["last_reading"] for d in devices
                if d.get("type") == DeviceType.MOISTURE_SENSOR.value and d.get("last_reading") is not None
            ]

            unread_alerts = self.supabase.table("alerts")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("is_read", False)\
                .execute()
            active_rules = self.supabase.table("automation_rules")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("is_active", True)\
                .execute()

            return DashboardStats(
                total_devices=len(devices),
                devices_by_status=by_status,
                active_pumps=sum(1 for p in pumps if p.get("status") == DeviceStatus.ONLINE.value),
                total_pumps=len(pumps),
                average_soil_moisture=round(sum(moisture) / len(moisture), 1) if moisture else None,
                unread_alerts=len(unread_alerts.data or []),
                active_rules=len(active_rules.data or []),
                total_zones=len(self._rows("zones", user_id, "id")),
                total_crops=len(self._rows("crops", user_id, "id")),
                next_irrigation=find_next_irrigation(
                    self._rows("irrigation_schedules", user_id), farm_now()
                ),
            )
        except Exception as e:
            logger.error(f"Error computing dashboard stats: {e}")
            raise HTTPException(status_code=500, detail="Failed to load dashboard statistics")

    def get_health(self, user_id: str) -> SystemHealth:
        try:
            devices = self._rows("devices", user_id, "id, status, battery_level")
            zones = self._rows("zones", user_id, "id")
            return compute_system_health(devices, len(zones))
        except Exception as e:
            logger.error(f"Error computing system health: {e}")
            raise HTTPException(status_code=500, detail="Failed to load system health")
