"""
Database models.
"""

from .base import (
    Base,
    IdMixin,
    TimestampMixin,
    StandardMixin,
    generate_id,
)
from .user import User, UserMeta
from .rbac import Organization, Group, Role, Permission
from .grants import (
    user_organizations,
    user_groups,
    group_permissions,
    organization_permissions,
    role_permissions,
    role_users,
)
from .audit_log import AuditLog
from .rate_limit import RateLimitBucket

__all__ = [
    # Base
    "Base",
    "IdMixin",
    "TimestampMixin",
    "StandardMixin",
    "generate_id",
    # Models
    "User",
    "UserMeta",
    "Organization",
    "Group",
    "Role",
    "Permission",
    "AuditLog",
    "RateLimitBucket",
    # Grant tables
    "user_organizations",
    "user_groups",
    "group_permissions",
    "organization_permissions",
    "role_permissions",
    "role_users",
]
