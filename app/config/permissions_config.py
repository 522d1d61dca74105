"""
Roles, Permissions and Plan Features Configuration
This config defines which platform role may perform which action on each module,
and the feature keys a subscription plan can carry.
Used by route guards, the /auth/me payload and the plan seed script.
"""

ROLE_FARMER = "farmer"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"

ROLES = [ROLE_FARMER, ROLE_ADMIN, ROLE_SUPER_ADMIN]
ADMIN_ROLES = [ROLE_ADMIN, ROLE_SUPER_ADMIN]

# Define modules and their actions
MODULES = {
    "zones": {
        "resource": "zones",
        "actions": ["create", "read", "update", "delete"],
        "description": "Field zone management"
    },
    "devices": {
        "resource": "devices",
        "actions": ["create", "read", "update", "delete"],
        "description": "IoT device management"
    },
    "crops": {
        "resource": "crops",
        "actions": ["create", "read", "update", "delete"],
        "description": "Crop management"
    },
    "irrigation": {
        "resource": "irrigation",
        "actions": ["create", "read", "update", "delete"],
        "description": "Irrigation schedules"
    },
    "automation": {
        "resource": "automation",
        "actions": ["create", "read", "update", "delete", "run"],
        "description": "Automation rules and history"
    },
    "alerts": {
        "resource": "alerts",
        "actions": ["read", "update"],
        "description": "Device and zone alerts"
    },
    "notifications": {
        "resource": "notifications",
        "actions": ["read", "update", "delete", "broadcast"],
        "description": "User notifications and broadcasts"
    },
    "subscriptions": {
        "resource": "subscriptions",
        "actions": ["read", "manage", "approve"],
        "description": "Subscription plans, requests and farmer activation"
    },
    "platform": {
        "resource": "platform",
        "actions": ["read", "manage"],
        "description": "Platform configuration and pages"
    },
    "contact": {
        "resource": "contact",
        "actions": ["create", "read", "manage"],
        "description": "Contact submissions and newsletter"
    },
}

# Actions each role gets on every module that defines them
ROLE_TYPES = {
    ROLE_FARMER: {
        "permissions": ["create", "read", "update", "delete", "run"],
        "description": "Farm owner managing their own resources"
    },
    ROLE_ADMIN: {
        "permissions": ["create", "read", "update", "delete", "run", "broadcast", "approve", "manage"],
        "description": "Platform administrator"
    },
    ROLE_SUPER_ADMIN: {
        "permissions": ["create", "read", "update", "delete", "run", "broadcast", "approve", "manage"],
        "description": "Platform owner"
    },
}

# Permissions reserved to super admins even though admins hold the action elsewhere
SUPER_ADMIN_ONLY = {
    "subscriptions:manage": "Edit plans and activate/deactivate farmer subscriptions",
}

# Feature flags a subscription plan may carry in subscription_plans.features
PLAN_FEATURE_KEYS = {
    "max_zones": "Maximum number of zones",
    "max_devices": "Maximum number of devices",
    "max_crops": "Maximum number of crops",
    "advanced_features": "Advanced analytics and widgets",
    "automation": "Automation rules",
    "weather_api": "Weather forecasts",
    "maps_api": "Map view",
}

# Limits applied when a farmer has no active subscription
FREE_TIER_LIMITS = {
    "max_zones": 1,
    "max_devices": 2,
    "max_crops": 1,
    "advanced_features": False,
    "automation": False,
}


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the permissions of each role
    Format: {
        "permissions": [
            {"name": "zones:create", "resource": "zones", "action": "create", "description": "..."},
            ...
        ],
        "roles": {
            "farmer": ["alerts:read", ...],
            ...
        }
    }
    """
    permissions = []
    roles = {}

    for module_config in MODULES.values():
        resource = module_config["resource"]
        for action in module_config["actions"]:
            permission_name = f"{resource}:{action}"
            permissions.append({
                "name": permission_name,
                "resource": resource,
                "action": action,
                "description": SUPER_ADMIN_ONLY.get(permission_name, f"{action.capitalize()} {resource}")
            })

    for role, role_config in ROLE_TYPES.items():
        role_permissions = []
        for module_config in MODULES.values():
            resource = module_config["resource"]
            for action in module_config["actions"]:
                permission_name = f"{resource}:{action}"
                if action not in role_config["permissions"]:
                    continue
                if permission_name in SUPER_ADMIN_ONLY and role != ROLE_SUPER_ADMIN:
                    continue
                role_permissions.append(permission_name)
        roles[role] = sorted(role_permissions)

    return {
        "permissions": permissions,
        "roles": roles
    }


def get_role_permissions(role: str):
    return PERMISSION_MATRIX["roles"].get(role, [])


PERMISSION_MATRIX = get_permission_matrix()
