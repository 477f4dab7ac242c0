"""
FastAPI dependencies.
"""

from .database import get_container, get_db
from .auth import Access, AuthContext, CurrentAuth, get_auth_context, require_permission
from .rate_limit import rate_limit
from .services import (
    CollectionQuery,
    Hooks,
    get_auth_service,
    get_collection_query,
    get_group_repository,
    get_hooks,
    get_organization_repository,
    get_permission_repository,
    get_role_repository,
    get_user_repository,
)

__all__ = [
    "get_container",
    "get_db",
    "Access",
    "AuthContext",
    "CurrentAuth",
    "get_auth_context",
    "require_permission",
    "rate_limit",
    "CollectionQuery",
    "Hooks",
    "get_auth_service",
    "get_collection_query",
    "get_group_repository",
    "get_hooks",
    "get_organization_repository",
    "get_permission_repository",
    "get_role_repository",
    "get_user_repository",
]
