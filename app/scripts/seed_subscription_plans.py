"""
Seed Subscription Plans Script
This script upserts the default Free / Basic / Pro plans into subscription_plans.
Can be run manually after provisioning a new Supabase project.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.permissions_config import FREE_TIER_LIMITS, PLAN_FEATURE_KEYS
from app.database.supabase_client import get_service_supabase
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        "name": "Free",
        "description": "Try AgroSense Hub on a single field",
        "price": 0,
        "billing_interval": "month",
        "features": {
            "max_zones": FREE_TIER_LIMITS["max_zones"],
            "max_devices": FREE_TIER_LIMITS["max_devices"],
            "max_crops": FREE_TIER_LIMITS["max_crops"],
            "advanced_features": False,
            "automation": False,
            "weather_api": True,
            "maps_api": True,
        },
    },
    {
        "name": "Basic",
        "description": "Small farms with a few irrigated zones",
        "price": 29,
        "billing_interval": "month",
        "features": {
            "max_zones": 5,
            "max_devices": 20,
            "max_crops": 10,
            "advanced_features": False,
            "automation": True,
            "weather_api": True,
            "maps_api": True,
        },
    },
    {
        "name": "Pro",
        "description": "Large farms with full automation and analytics",
        "price": 79,
        "billing_interval": "month",
        "features": {
            "max_zones": 50,
            "max_devices": 200,
            "max_crops": 100,
            "advanced_features": True,
            "automation": True,
            "weather_api": True,
            "maps_api": True,
        },
    },
]


def validate_plan(plan: dict):
    unknown = set(plan["features"]) - set(PLAN_FEATURE_KEYS)
    if unknown:
        raise ValueError(f"Plan {plan['name']} has unknown feature keys: {', '.join(sorted(unknown))}")


def seed_plans(supabase: Client, plans=None):
    """Create missing plans and refresh existing ones (matched by name)"""
    logger.info("Seeding subscription plans...")

    created_count = 0
    updated_count = 0

    for plan in plans or DEFAULT_PLANS:
        try:
            validate_plan(plan)
            existing = supabase.table("subscription_plans")\
                .select("id")\
                .eq("name", plan["name"])\
                .execute()

            if existing.data:
                supabase.table("subscription_plans")\
                    .update({
                        "description": plan["description"],
                        "price": plan["price"],
                        "billing_interval": plan["billing_interval"],
                        "features": plan["features"]
                    })\
                    .eq("id", existing.data[0]["id"])\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated plan: {plan['name']}")
            else:
                supabase.table("subscription_plans").insert(plan).execute()
                created_count += 1
                logger.debug(f"Created plan: {plan['name']}")
        except Exception as e:
            logger.error(f"Error processing plan {plan['name']}: {e}")

    logger.info(f"Plans seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def main():
    """Main function to seed subscription plans"""
    try:
        supabase = get_service_supabase()
        total = seed_plans(supabase)
        logger.info(f"Seeding completed: {total} plan(s)")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
