"""
User repository.
"""

from typing import Any

from sqlalchemy import CompoundSelect, delete, select, union

from gatekeeper.core.exceptions import LoginConflictError, OwnerConstraintError
from gatekeeper.core.security import PasswordHasher
from gatekeeper.models import (
    Group,
    Organization,
    Permission,
    Role,
    User,
    UserMeta,
    group_permissions,
    organization_permissions,
    role_permissions,
    role_users,
    user_groups,
    user_organizations,
)
from gatekeeper.utils.pagination import Page
from gatekeeper.utils.query import QueryDescriptor
from .base import BaseRepository, Relation, paginate


class UserRepository(BaseRepository[User]):
    """
    Users, their memberships and their metadata.

    Passwords are hashed on the way in; pass a hasher when creating or
    updating passwords.
    """

    model = User
    resource_type = "users"
    default_order = "login"
    required_fields = frozenset({"login", "password"})
    mutable_fields = frozenset({"login", "password", "email", "attributes", "enabled"})
    conflict_error = LoginConflictError
    relations = {
        "groups": Relation(user_groups, "user_id", "group_id", Group, "groups"),
        "roles": Relation(role_users, "user_id", "role_id", Role, "roles"),
        "organizations": Relation(
            user_organizations, "user_id", "organization_id", Organization, "organizations"
        ),
    }

    def __init__(self, db, hasher: PasswordHasher | None = None):
        super().__init__(db)
        self.hasher = hasher

    async def get_by_login(self, login: str) -> User | None:
        """Get user by login."""
        return await self.get_one(login=login)

    async def _validate(self, fields: dict[str, Any], current: User | None) -> None:
        if "login" in fields:
            await self._require_unique(current, login=fields["login"])

    def _prepare(self, fields: dict[str, Any]) -> dict[str, Any]:
        if "password" not in fields:
            return fields
        if self.hasher is None:
            raise RuntimeError("UserRepository needs a PasswordHasher to store passwords")
        return {**fields, "password": self.hasher.hash(fields["password"])}

    async def _before_delete(self, entity: User) -> None:
        result = await self.db.execute(
            select(Organization.id).where(Organization.owner_id == entity.id).limit(1)
        )
        if result.first() is not None:
            raise OwnerConstraintError("User owns an organization; transfer ownership first")

    # ------------------------------------------------------------
    # Memberships and permissions
    # ------------------------------------------------------------

    async def group_ids(self, user_id: str) -> list[str]:
        """IDs of the groups a user belongs to."""
        return await self.granted_ids("groups", user_id)

    def _permission_ids(self, user_id: str) -> CompoundSelect:
        """Permission IDs granted through roles, groups and organizations."""
        through_roles = (
            select(role_permissions.c.permission_id)
            .join(role_users, role_users.c.role_id == role_permissions.c.role_id)
            .where(role_users.c.user_id == user_id)
        )
        through_groups = (
            select(group_permissions.c.permission_id)
            .join(user_groups, user_groups.c.group_id == group_permissions.c.group_id)
            .where(user_groups.c.user_id == user_id)
        )
        through_organizations = (
            select(organization_permissions.c.permission_id)
            .join(
                user_organizations,
                user_organizations.c.organization_id == organization_permissions.c.organization_id,
            )
            .where(user_organizations.c.user_id == user_id)
        )
        return union(through_roles, through_groups, through_organizations)

    async def get_effective_permissions(self, user_id: str) -> set[str]:
        """Names of every permission the user holds."""
        stmt = select(Permission.name).where(
            Permission.id.in_(self._permission_ids(user_id))
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def list_permissions(self, user_id: str, descriptor: QueryDescriptor) -> Page[Permission]:
        """Effective permissions of a user as a collection."""
        await self.get(user_id)
        stmt = select(Permission).where(
            Permission.id.in_(self._permission_ids(user_id))
        )
        return await paginate(self.db, stmt, Permission, "permissions", descriptor, "name")

    # ------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------

    async def get_meta(self, user_id: str, key: str) -> str | None:
        """Get a metadata value."""
        meta = await self.db.get(UserMeta, (user_id, key))
        return meta.meta_value if meta else None

    async def set_meta(self, user_id: str, key: str, value: str) -> None:
        """Set a metadata value, replacing any previous one."""
        async with self.atomic():
            meta = await self.db.get(UserMeta, (user_id, key))
            if meta is None:
                self.db.add(UserMeta(user_id=user_id, meta_key=key, meta_value=value))
            else:
                meta.meta_value = value

    async def delete_meta(self, user_id: str, key: str) -> bool:
        """Delete a metadata value. Returns whether it existed."""
        async with self.atomic():
            result = await self.db.execute(
                delete(UserMeta).where(UserMeta.user_id == user_id, UserMeta.meta_key == key)
            )
        return bool(result.rowcount)
