"""
Data access layer.
"""

from .base import BaseRepository, Relation
from .organization import OrganizationRepository
from .group import GroupRepository
from .role import RoleRepository
from .permission import PermissionRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "Relation",
    "OrganizationRepository",
    "GroupRepository",
    "RoleRepository",
    "PermissionRepository",
    "UserRepository",
]
