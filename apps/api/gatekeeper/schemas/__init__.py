"""
Request and response schemas.
"""

from .common import (
    RequestBody,
    Attributes,
    ResourceObject,
    ResourceDocument,
    CollectionDocument,
    resource_object,
    resource_document,
    collection_document,
)
from .auth import LoginRequest, RefreshRequest, AuthResource
from .organization import OrganizationAttributes, OrganizationCreate, OrganizationUpdate
from .group import GroupAttributes, GroupCreate, GroupUpdate
from .role import RoleAttributes, RoleCreate, RoleUpdate
from .permission import PermissionAttributes, PermissionCreate, PermissionUpdate
from .user import UserAttributes, UserCreate, UserUpdate
from .grants import PermissionIdsRequest, UserIdsRequest

__all__ = [
    "RequestBody",
    "Attributes",
    "ResourceObject",
    "ResourceDocument",
    "CollectionDocument",
    "resource_object",
    "resource_document",
    "collection_document",
    "LoginRequest",
    "RefreshRequest",
    "AuthResource",
    "OrganizationAttributes",
    "OrganizationCreate",
    "OrganizationUpdate",
    "GroupAttributes",
    "GroupCreate",
    "GroupUpdate",
    "RoleAttributes",
    "RoleCreate",
    "RoleUpdate",
    "PermissionAttributes",
    "PermissionCreate",
    "PermissionUpdate",
    "UserAttributes",
    "UserCreate",
    "UserUpdate",
    "PermissionIdsRequest",
    "UserIdsRequest",
]
