"""
Role repository.
"""

from typing import Any

from gatekeeper.models import Organization, Permission, Role, User, role_permissions, role_users
from .base import BaseRepository, Relation


class RoleRepository(BaseRepository[Role]):
    """Roles, unique by name within their scoping entity."""

    model = Role
    resource_type = "roles"
    required_fields = frozenset({"entity_id", "name"})
    mutable_fields = frozenset({"entity_id", "name", "attributes", "active"})
    relations = {
        "permissions": Relation(
            role_permissions, "role_id", "permission_id",
            Permission, "permissions",
        ),
        "users": Relation(
            role_users, "role_id", "user_id",
            User, "users", child_order="login",
        ),
    }

    async def _validate(self, fields: dict[str, Any], current: Role | None) -> None:
        if "entity_id" in fields:
            await self._require_reference(Organization, fields["entity_id"], "entity_id")

        if "name" in fields or "entity_id" in fields:
            entity_id = fields.get("entity_id", current.entity_id if current else None)
            name = fields.get("name", current.name if current else None)
            await self._require_unique(current, entity_id=entity_id, name=name)
