"""
Group repository.
"""

from typing import Any

from gatekeeper.models import Group, Organization, Permission, User, group_permissions, user_groups
from .base import BaseRepository, Relation


class GroupRepository(BaseRepository[Group]):
    """Groups, unique by name within their organization."""

    model = Group
    resource_type = "groups"
    required_fields = frozenset({"organization_id", "name"})
    mutable_fields = frozenset({"organization_id", "name", "attributes", "active"})
    relations = {
        "permissions": Relation(
            group_permissions, "group_id", "permission_id",
            Permission, "permissions",
        ),
        "users": Relation(
            user_groups, "group_id", "user_id",
            User, "users", child_order="login",
        ),
    }

    async def _validate(self, fields: dict[str, Any], current: Group | None) -> None:
        if "organization_id" in fields:
            await self._require_reference(Organization, fields["organization_id"], "organization_id")

        if "name" in fields or "organization_id" in fields:
            organization_id = fields.get(
                "organization_id", current.organization_id if current else None
            )
            name = fields.get("name", current.name if current else None)
            await self._require_unique(current, organization_id=organization_id, name=name)
