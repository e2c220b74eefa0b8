"""
Permissions and Roles Configuration
This config defines the permission catalog for every farm module and the default roles.
Used by the seed script to populate/update the permissions, roles and role_permissions tables.

Permission codes follow the `category.action` shape, e.g. `cages.delete`.
"""

import re

PERMISSION_CODE_PATTERN = re.compile(r"^[a-z][a-z0-9_]*\.[a-z][a-z0-9_]*$")

# Define modules and their actions
MODULES = {
    "cages": {
        "actions": ["create", "read", "update", "delete"],
        "description": "Cage management"
    },
    "stocking": {
        "actions": ["create", "read", "update", "delete"],
        "description": "Cage stocking records"
    },
    "daily_records": {
        "actions": ["create", "read", "update", "delete", "upload"],
        "description": "Daily feeding and mortality records"
    },
    "biweekly_records": {
        "actions": ["create", "read", "update", "delete"],
        "description": "Biweekly sampling records"
    },
    "harvest": {
        "actions": ["create", "read", "update", "delete"],
        "description": "Harvest records"
    },
    "feed": {
        "actions": ["create", "read", "update", "delete"],
        "description": "Feed types, suppliers and feed tracking"
    },
    "users": {
        "actions": ["create", "read", "update", "deactivate", "assign_roles"],
        "description": "Company user management"
    },
    "roles": {
        "actions": ["create", "read", "assign"],
        "description": "Role and permission management"
    },
    "audit_logs": {
        "actions": ["create", "read"],
        "description": "Audit trail"
    }
}

# Descriptions for actions that are not plain CRUD
MODULE_SPECIFIC_PERMISSIONS = {
    "daily_records": {
        "upload": "Bulk upload daily records"
    },
    "users": {
        "deactivate": "Deactivate company users",
        "assign_roles": "Assign and revoke user roles within a company"
    },
    "roles": {
        "assign": "Change the permissions granted by a role"
    },
    "audit_logs": {
        "create": "Write manual audit log entries"
    }
}

FARM_MODULES = ["cages", "stocking", "daily_records", "biweekly_records", "harvest", "feed"]

# Default roles: module -> granted actions ("*" grants every action of the module)
DEFAULT_ROLES = {
    "Administrator": {
        "description": "Full access to every module of the company",
        "grants": {module: ["*"] for module in MODULES}
    },
    "Manager": {
        "description": "Runs farm operations and reviews the audit trail",
        "grants": {
            **{module: ["*"] for module in FARM_MODULES},
            "users": ["read"],
            "roles": ["read"],
            "audit_logs": ["read"],
        }
    },
    "Operator": {
        "description": "Records day-to-day cage operations",
        "grants": {module: ["create", "read", "update"] for module in FARM_MODULES}
    },
    "Viewer": {
        "description": "Read-only access to farm data",
        "grants": {module: ["read"] for module in FARM_MODULES}
    }
}


def permission_code(category: str, action: str) -> str:
    return f"{category}.{action}"


def is_valid_permission_code(code: str) -> bool:
    return bool(code) and PERMISSION_CODE_PATTERN.match(code) is not None


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the default roles
    Format: {
        "permissions": [
            {"code": "cages.create", "description": "Create cages"},
            ...
        ],
        "roles": [
            {
                "name": "Operator",
                "description": "...",
                "permissions": ["cages.create", "cages.read", ...]
            },
            ...
        ]
    }
    """
    permissions = []
    roles = []

    for module_name, module_config in MODULES.items():
        for action in module_config["actions"]:
            description = f"{action.replace('_', ' ').capitalize()} {module_name.replace('_', ' ')}"
            if action in MODULE_SPECIFIC_PERMISSIONS.get(module_name, {}):
                description = MODULE_SPECIFIC_PERMISSIONS[module_name][action]
            permissions.append({
                "code": permission_code(module_name, action),
                "description": description
            })

    for role_name, role_config in DEFAULT_ROLES.items():
        role_permissions = []
        for module_name, actions in role_config["grants"].items():
            module_actions = MODULES[module_name]["actions"]
            granted = module_actions if "*" in actions else [a for a in actions if a in module_actions]
            role_permissions.extend(permission_code(module_name, action) for action in granted)
        roles.append({
            "name": role_name,
            "description": role_config["description"],
            "permissions": sorted(role_permissions)
        })

    return {
        "permissions": sorted(permissions, key=lambda p: p["code"]),
        "roles": roles
    }


# Export the matrix for use in seed scripts
PERMISSION_MATRIX = get_permission_matrix()
