"""
Repository and service dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.container import Container
from gatekeeper.core.hooks import HookManager
from gatekeeper.repositories import (
    GroupRepository,
    OrganizationRepository,
    PermissionRepository,
    RoleRepository,
    UserRepository,
)
from gatekeeper.services.auth import AuthService
from gatekeeper.utils.query import QueryDescriptor, parse_query
from .database import get_container, get_db


async def get_organization_repository(db: AsyncSession = Depends(get_db)) -> OrganizationRepository:
    return OrganizationRepository(db)


async def get_group_repository(db: AsyncSession = Depends(get_db)) -> GroupRepository:
    return GroupRepository(db)


async def get_role_repository(db: AsyncSession = Depends(get_db)) -> RoleRepository:
    return RoleRepository(db)


async def get_permission_repository(db: AsyncSession = Depends(get_db)) -> PermissionRepository:
    return PermissionRepository(db)


async def get_user_repository(
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
) -> UserRepository:
    """User repository that hashes passwords with the application pepper."""
    return UserRepository(db, hasher=container.hasher)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
) -> AuthService:
    """Get auth service instance (for login/refresh)."""
    return AuthService(
        db,
        container.settings.auth,
        container.hasher,
        container.hooks,
        rate_limit=container.settings.api.rate_limit,
    )


def get_hooks(container: Container = Depends(get_container)) -> HookManager:
    return container.hooks


def get_collection_query(
    request: Request,
    container: Container = Depends(get_container),
) -> QueryDescriptor:
    """Parse page/filter/fields/sort query parameters."""
    return parse_query(
        request.query_params.multi_items(),
        default_page_size=container.settings.api.default_page_size,
        max_page_size=container.settings.api.max_page_size,
    )


CollectionQuery = Annotated[QueryDescriptor, Depends(get_collection_query)]
Hooks = Annotated[HookManager, Depends(get_hooks)]
