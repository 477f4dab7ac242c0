"""
Grant (many-to-many) join tables.

Rows have no lifecycle of their own: a grant exists or it does not.
Composite primary keys make granting twice impossible at the store level.
"""

from sqlalchemy import Column, ForeignKey, String, Table

from .base import Base


def _grant_table(name: str, parent: tuple[str, str], child: tuple[str, str]) -> Table:
    parent_column, parent_table = parent
    child_column, child_table = child
    return Table(
        name,
        Base.metadata,
        Column(
            parent_column,
            String(36),
            ForeignKey(f"{parent_table}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        Column(
            child_column,
            String(36),
            ForeignKey(f"{child_table}.id", ondelete="CASCADE"),
            primary_key=True,
            index=True,
        ),
    )


user_organizations = _grant_table(
    "user_organizations",
    ("organization_id", "organizations"),
    ("user_id", "users"),
)

user_groups = _grant_table(
    "user_groups",
    ("group_id", "groups"),
    ("user_id", "users"),
)

group_permissions = _grant_table(
    "group_permissions",
    ("group_id", "groups"),
    ("permission_id", "permissions"),
)

organization_permissions = _grant_table(
    "organization_permissions",
    ("organization_id", "organizations"),
    ("permission_id", "permissions"),
)

role_permissions = _grant_table(
    "role_permissions",
    ("role_id", "roles"),
    ("permission_id", "permissions"),
)

role_users = _grant_table(
    "role_users",
    ("role_id", "roles"),
    ("user_id", "users"),
)
