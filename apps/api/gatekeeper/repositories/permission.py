"""
Permission repository.
"""

from typing import Any

from gatekeeper.models import Permission
from .base import BaseRepository


class PermissionRepository(BaseRepository[Permission]):
    """Permissions, globally unique by name."""

    model = Permission
    resource_type = "permissions"
    required_fields = frozenset({"name"})
    mutable_fields = frozenset({"name", "description"})

    async def _validate(self, fields: dict[str, Any], current: Permission | None) -> None:
        if "name" in fields:
            await self._require_unique(current, name=fields["name"])
