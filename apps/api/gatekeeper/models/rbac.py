"""
RBAC models: organizations, groups, roles, permissions.
"""

from typing import Any
from sqlalchemy import String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdMixin, StandardMixin
from . import grants  # noqa: F401


class Organization(Base, StandardMixin):
    """
    Organization (the scoping entity roles attach to).

    The owner is always also a member through ``user_organizations``.
    """

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    attributes: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Organization {self.name}>"


class Group(Base, StandardMixin):
    """Group of users, belonging to exactly one organization."""

    __tablename__ = "groups"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_groups_organization_name"),
    )

    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    attributes: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Group {self.name}>"


class Role(Base, StandardMixin):
    """Named bundle of permissions, scoped to an organization."""

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("entity_id", "name", name="uq_roles_entity_name"),
    )

    entity_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    attributes: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class Permission(Base, IdMixin):
    """Organization-agnostic grant primitive, e.g. ``global.groups.create``."""

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<Permission {self.name}>"
