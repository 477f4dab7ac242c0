"""
Current user routes. Any authenticated caller may read their own record.
"""

from fastapi import APIRouter, Depends, Request

from gatekeeper.api.dependencies import CollectionQuery, CurrentAuth, get_user_repository
from gatekeeper.repositories import UserRepository
from gatekeeper.schemas import (
    CollectionDocument,
    GroupAttributes,
    OrganizationAttributes,
    PermissionAttributes,
    ResourceDocument,
    RoleAttributes,
    UserAttributes,
    collection_document,
    resource_document,
)
from gatekeeper.utils.pagination import validate_fields
from .common import api_base

router = APIRouter()


@router.get("", response_model=ResourceDocument)
async def get_me(
    auth: CurrentAuth,
    request: Request,
    users: UserRepository = Depends(get_user_repository),
):
    """Get the authenticated user."""
    user = await users.get(auth.user_id)
    return resource_document("users", user, UserAttributes, api_base(request))


@router.get("/permissions", response_model=CollectionDocument)
async def get_my_permissions(
    auth: CurrentAuth,
    request: Request,
    query: CollectionQuery,
    users: UserRepository = Depends(get_user_repository),
):
    fields = validate_fields("permissions", query)
    page = await users.list_permissions(auth.user_id, query)
    return collection_document("permissions", page, PermissionAttributes, request.url, api_base(request), fields)


@router.get("/roles", response_model=CollectionDocument)
async def get_my_roles(
    auth: CurrentAuth,
    request: Request,
    query: CollectionQuery,
    users: UserRepository = Depends(get_user_repository),
):
    fields = validate_fields("roles", query)
    page = await users.list_related("roles", auth.user_id, query)
    return collection_document("roles", page, RoleAttributes, request.url, api_base(request), fields)


@router.get("/groups", response_model=CollectionDocument)
async def get_my_groups(
    auth: CurrentAuth,
    request: Request,
    query: CollectionQuery,
    users: UserRepository = Depends(get_user_repository),
):
    fields = validate_fields("groups", query)
    page = await users.list_related("groups", auth.user_id, query)
    return collection_document("groups", page, GroupAttributes, request.url, api_base(request), fields)


@router.get("/organizations", response_model=CollectionDocument)
async def get_my_organizations(
    auth: CurrentAuth,
    request: Request,
    query: CollectionQuery,
    users: UserRepository = Depends(get_user_repository),
):
    fields = validate_fields("organizations", query)
    page = await users.list_related("organizations", auth.user_id, query)
    return collection_document(
        "organizations", page, OrganizationAttributes, request.url, api_base(request), fields
    )
