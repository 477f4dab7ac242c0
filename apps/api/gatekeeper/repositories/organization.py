"""
Organization repository.
"""

from typing import Any

from sqlalchemy import select

from gatekeeper.core.exceptions import OwnerConstraintError
from gatekeeper.models import (
    Group,
    Organization,
    Permission,
    Role,
    User,
    organization_permissions,
    user_organizations,
)
from .base import BaseRepository, Relation, delete_owned_rows


class OrganizationRepository(BaseRepository[Organization]):
    """
    Organizations and their permission/user grants.

    The owner is always a member: creating an organization or changing its
    owner grants membership, and the owner cannot be revoked.
    """

    model = Organization
    resource_type = "organizations"
    required_fields = frozenset({"name", "owner_id"})
    mutable_fields = frozenset({"name", "owner_id", "attributes", "active"})
    relations = {
        "permissions": Relation(
            organization_permissions, "organization_id", "permission_id",
            Permission, "permissions",
        ),
        "users": Relation(
            user_organizations, "organization_id", "user_id",
            User, "users", child_order="login",
        ),
    }

    async def _validate(self, fields: dict[str, Any], current: Organization | None) -> None:
        if "owner_id" in fields:
            await self._require_reference(User, fields["owner_id"], "owner_id")
        if "name" in fields:
            await self._require_unique(current, name=fields["name"])

    async def _ensure_member(self, organization_id: str, user_id: str) -> None:
        stmt = select(user_organizations.c.user_id).where(
            user_organizations.c.organization_id == organization_id,
            user_organizations.c.user_id == user_id,
        )
        if (await self.db.execute(stmt)).first() is None:
            await self.db.execute(
                user_organizations.insert().values(
                    organization_id=organization_id, user_id=user_id
                )
            )

    async def _after_insert(self, entity: Organization) -> None:
        await self._ensure_member(entity.id, entity.owner_id)

    async def _after_update(self, entity: Organization, fields: dict[str, Any]) -> None:
        if "owner_id" in fields:
            await self._ensure_member(entity.id, entity.owner_id)

    async def _before_revoke(self, relation: str, entity: Organization, child_ids: list[str]) -> None:
        if relation == "users" and entity.owner_id in child_ids:
            raise OwnerConstraintError()

    async def _before_delete(self, entity: Organization) -> None:
        # Groups and roles cannot outlive their organization
        for model, column in ((Group, Group.organization_id), (Role, Role.entity_id)):
            result = await self.db.execute(select(model).where(column == entity.id))
            children = list(result.scalars().all())
            if not children:
                continue
            await delete_owned_rows(self.db, model, [child.id for child in children])
            for child in children:
                await self.db.delete(child)
        await self.db.flush()
