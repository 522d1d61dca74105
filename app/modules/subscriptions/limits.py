from typing import Any, Dict, Optional

from pydantic import BaseModel

from app.config.permissions_config import ADMIN_ROLES, FREE_TIER_LIMITS

LIMIT_KINDS = ("zones", "devices", "crops")
FEATURES = ("automation", "advanced", "weather", "maps")


class LimitExceeded(Exception):
    """Raised by SubscriptionLimits.enforce when a plan cap is reached"""

    def __init__(self, kind: str, max_count: int):
        self.kind = kind
        self.max_count = max_count
        super().__init__(
            f"You've reached the limit of {max_count} {kind} for your current plan. "
            f"Please upgrade to add more."
        )


class SubscriptionLimits(BaseModel):
    # None means unlimited
    max_zones: Optional[int] = 0
    max_devices: Optional[int] = 0
    max_crops: Optional[int] = 0
    has_advanced_features: bool = False
    has_automation: bool = False
    has_weather_api: bool = False
    has_maps_api: bool = False

    def max_for(self, kind: str) -> Optional[int]:
        if kind == "zones":
            return self.max_zones
        if kind == "devices":
            return self.max_devices
        return self.max_crops

    def check_limit(self, kind: str, current_count: int) -> bool:
        max_count = self.max_for(kind)
        if max_count is None:
            return True
        return current_count < max_count

    def enforce(self, kind: str, current_count: int) -> None:
        if not self.check_limit(kind, current_count):
            raise LimitExceeded(kind, self.max_for(kind))

    def can_use_feature(self, feature: str) -> bool:
        if feature == "automation":
            return self.has_automation
        if feature == "advanced":
            return self.has_advanced_features
        if feature == "weather":
            return self.has_weather_api
        if feature == "maps":
            return self.has_maps_api
        return False


def compute_limits(profile: Optional[Dict[str, Any]], subscription: Optional[Dict[str, Any]]) -> SubscriptionLimits:
    """Derive limits from the profile role and the active subscription's plan features."""
    if profile and profile.get("role") in ADMIN_ROLES:
        return SubscriptionLimits(
            max_zones=None,
            max_devices=None,
            max_crops=None,
            has_advanced_features=True,
            has_automation=True,
            has_weather_api=True,
            has_maps_api=True,
        )

    plan = (subscription or {}).get("plan") or {}
    features = plan.get("features")
    if features:
        # Weather and maps run on the shared platform keys, so every plan gets them
        return SubscriptionLimits(
            max_zones=features.get("max_zones") or 0,
            max_devices=features.get("max_devices") or 0,
            max_crops=features.get("max_crops") or 0,
            has_advanced_features=bool(features.get("advanced_features")),
            has_automation=bool(features.get("automation")),
            has_weather_api=True,
            has_maps_api=True,
        )

    return SubscriptionLimits(
        max_zones=FREE_TIER_LIMITS["max_zones"],
        max_devices=FREE_TIER_LIMITS["max_devices"],
        max_crops=FREE_TIER_LIMITS["max_crops"],
        has_advanced_features=FREE_TIER_LIMITS["advanced_features"],
        has_automation=FREE_TIER_LIMITS["automation"],
        has_weather_api=True,
        has_maps_api=True,
    )
