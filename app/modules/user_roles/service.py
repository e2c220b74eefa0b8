import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from app.core.errors import NotFoundError, StoreError
from app.modules.user_roles.repository import UserRoleRepository
from app.modules.user_roles.schemas import UserRoleResponse

logger = logging.getLogger(__name__)


class UserRoleService:
    def __init__(self, repository: UserRoleRepository):
        self.repository = repository

    def _ensure_references(self, user_id: str, role_id: str, company_id: str) -> None:
        if not self.repository.user_exists(user_id):
            raise NotFoundError("User", user_id)
        if not self.repository.role_exists(role_id):
            raise NotFoundError("Role", role_id)
        if not self.repository.company_exists(company_id):
            raise NotFoundError("Company", company_id)

    def list_assignments(self, user_id: str, company_id: Optional[str] = None) -> List[UserRoleResponse]:
        """List a user's role assignments, optionally within one company"""
        rows = self.repository.list_assignments(user_id, company_id)
        assignments = [
            UserRoleResponse(**{key: row.get(key) for key in UserRoleResponse.model_fields})
            for row in rows
        ]
        return sorted(assignments, key=lambda a: (a.company_id, a.role_id))

    def assign_role(
        self,
        user_id: str,
        role_id: str,
        company_id: str,
        assigned_by: Optional[str] = None
    ) -> UserRoleResponse:
        """Assign a role to a user within a company. Re-assigning returns the existing row."""
        assignment, _ = self.grant_role(user_id, role_id, company_id, assigned_by)
        return assignment

    def grant_role(
        self,
        user_id: str,
        role_id: str,
        company_id: str,
        assigned_by: Optional[str] = None
    ) -> Tuple[UserRoleResponse, bool]:
        """Like assign_role, also telling whether this call inserted the row"""
        self._ensure_references(user_id, role_id, company_id)

        existing = self.repository.get_assignment(user_id, role_id, company_id)
        if existing:
            logger.debug(f"Role {role_id} already assigned to user {user_id} in company {company_id}")
            return UserRoleResponse(**existing), False

        inserted = self.repository.insert_assignment({
            "user_id": user_id,
            "role_id": role_id,
            "company_id": company_id,
            "assigned_by": assigned_by,
            "assigned_at": datetime.now(timezone.utc).isoformat()
        })
        if inserted is None:
            # A concurrent request inserted the same triple first
            inserted = self.repository.get_assignment(user_id, role_id, company_id)
            if inserted is None:
                raise StoreError("assign user role", detail="assignment not visible after insert")
            return UserRoleResponse(**inserted), False

        logger.info(f"Assigned role {role_id} to user {user_id} in company {company_id}")
        return UserRoleResponse(**inserted), True

    def replace_role(
        self,
        user_id: str,
        new_role_id: str,
        company_id: str,
        assigned_by: Optional[str] = None
    ) -> None:
        """Make `new_role_id` the only role the user holds in the company"""
        self._ensure_references(user_id, new_role_id, company_id)
        self.repository.replace_assignments(user_id, new_role_id, company_id, assigned_by)
        logger.info(f"Replaced roles of user {user_id} in company {company_id} with {new_role_id}")

    def remove_role(self, user_id: str, role_id: str, company_id: str) -> bool:
        """Revoke a role; revoking one the user does not hold is a no-op. True when a row went away."""
        self._ensure_references(user_id, role_id, company_id)
        removed = self.repository.delete_assignment(user_id, role_id, company_id)
        if removed:
            logger.info(f"Removed role {role_id} from user {user_id} in company {company_id}")
        return bool(removed)
