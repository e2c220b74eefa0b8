"""
Seed Permissions and Roles Script
This script populates the permissions and roles tables using the config.
Can be run manually or as part of a deployment job.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.permissions_config import PERMISSION_MATRIX
from app.core.errors import AccessControlError
from app.database.supabase_client import SupabaseClient, execute
from app.modules.roles.repository import SupabaseRoleRepository
from app.modules.roles.schemas import RoleCreate
from app.modules.roles.service import RoleService, validate_permission_code
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_permissions(supabase: Client) -> int:
    """Upsert the permission catalog from config"""
    logger.info("Seeding permissions...")

    permissions = PERMISSION_MATRIX["permissions"]
    for perm in permissions:
        validate_permission_code(perm["code"])

    execute(
        supabase.table("permissions").upsert(permissions, on_conflict="code"),
        "seed permissions"
    )
    logger.info(f"Permissions seeded: {len(permissions)} upserted")
    return len(permissions)


def seed_roles(service: RoleService) -> int:
    """Create missing default roles and reset the permission set of existing ones"""
    logger.info("Seeding roles...")

    created_count = 0
    updated_count = 0

    for role in PERMISSION_MATRIX["roles"]:
        try:
            existing = service.find_role_by_name(role["name"])
            if existing is None:
                service.create_role(RoleCreate(
                    name=role["name"],
                    description=role["description"],
                    permission_codes=role["permissions"]
                ))
                created_count += 1
                logger.debug(f"Created role: {role['name']}")
            else:
                resolved = service.permissions.get_permissions_by_codes(role["permissions"])
                service.replace_role_permissions(existing.id, [p.id for p in resolved])
                updated_count += 1
                logger.debug(f"Updated role: {role['name']}")
        except AccessControlError as e:
            logger.error(f"Error processing role {role['name']}: {e}")

    logger.info(f"Roles seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def main():
    """Main function to seed permissions and roles"""
    try:
        supabase = SupabaseClient.get_service_client()

        logger.info("Starting permissions and roles seeding...")

        # Seed permissions first
        perm_count = seed_permissions(supabase)

        # Then seed roles (which depend on permissions)
        role_count = seed_roles(RoleService(SupabaseRoleRepository(supabase)))

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {perm_count} permissions, {role_count} roles processed")

    except AccessControlError as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
