"""
User routes.

A caller holding only ``self.users.*`` sees and edits their own record.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from gatekeeper.api.dependencies import (
    Access,
    CollectionQuery,
    Hooks,
    get_user_repository,
    require_permission,
)
from gatekeeper.core.exceptions import NotFoundError
from gatekeeper.core.hooks import ResourceCreated, ResourceDeleted, ResourceUpdated
from gatekeeper.repositories import UserRepository
from gatekeeper.schemas import (
    CollectionDocument,
    GroupAttributes,
    OrganizationAttributes,
    PermissionAttributes,
    ResourceDocument,
    RoleAttributes,
    UserAttributes,
    UserCreate,
    UserUpdate,
    collection_document,
    resource_document,
)
from gatekeeper.utils.pagination import validate_fields
from .common import api_base

logger = structlog.get_logger()

router = APIRouter()

RESOURCE = "users"

RELATED_ATTRIBUTES = {
    "groups": GroupAttributes,
    "roles": RoleAttributes,
    "organizations": OrganizationAttributes,
}


@router.get("", response_model=CollectionDocument)
async def list_users(
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("users.read", allow_self=True)),
    repo: UserRepository = Depends(get_user_repository),
):
    """List users (only the caller with self.users.read)."""
    fields = validate_fields(RESOURCE, query)
    restrict_ids = None if access.is_global else [access.user_id]
    page = await repo.list(query, restrict_ids=restrict_ids)
    return collection_document(RESOURCE, page, UserAttributes, request.url, api_base(request), fields)


@router.post("", response_model=ResourceDocument, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    data: UserCreate,
    hooks: Hooks,
    _: Access = Depends(require_permission("users.create")),
    repo: UserRepository = Depends(get_user_repository),
):
    """Create a user; the password is stored hashed."""
    user_id = await repo.create(data.model_dump(exclude_unset=True))
    logger.info("User created", id=user_id)
    await hooks.dispatch(ResourceCreated(resource_type="user", resource_id=user_id))
    return resource_document(RESOURCE, await repo.get(user_id), UserAttributes, api_base(request))


@router.get("/{user_id}", response_model=ResourceDocument)
async def get_user(
    user_id: str,
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("users.read", allow_self=True)),
    repo: UserRepository = Depends(get_user_repository),
):
    access.require_own(user_id, [access.user_id])
    fields = validate_fields(RESOURCE, query)
    user = await repo.get(user_id)
    return resource_document(RESOURCE, user, UserAttributes, api_base(request), fields)


@router.patch("/{user_id}", response_model=ResourceDocument)
async def update_user(
    user_id: str,
    request: Request,
    data: UserUpdate,
    hooks: Hooks,
    access: Access = Depends(require_permission("users.update", allow_self=True)),
    repo: UserRepository = Depends(get_user_repository),
):
    access.require_own(user_id, [access.user_id])
    fields = data.model_dump(exclude_unset=True)
    user = await repo.update(user_id, fields)
    logger.info("User updated", id=user_id, fields=sorted(fields))
    await hooks.dispatch(ResourceUpdated(
        resource_type="user", resource_id=user_id, fields=tuple(sorted(fields)),
    ))
    return resource_document(RESOURCE, user, UserAttributes, api_base(request))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    hooks: Hooks,
    _: Access = Depends(require_permission("users.delete")),
    repo: UserRepository = Depends(get_user_repository),
):
    """Delete user. Owners of an organization cannot be deleted."""
    if not await repo.delete(user_id):
        raise NotFoundError(f"User {user_id} does not exist")
    logger.info("User deleted", id=user_id)
    await hooks.dispatch(ResourceDeleted(resource_type="user", resource_id=user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/permissions", response_model=CollectionDocument)
async def list_user_permissions(
    user_id: str,
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("users.permissions.read", allow_self=True)),
    repo: UserRepository = Depends(get_user_repository),
):
    """Effective permissions, through roles, groups and organizations."""
    access.require_own(user_id, [access.user_id])
    fields = validate_fields("permissions", query)
    page = await repo.list_permissions(user_id, query)
    return collection_document("permissions", page, PermissionAttributes, request.url, api_base(request), fields)


def _add_related_route(relation: str) -> None:
    async def list_related(
        user_id: str,
        request: Request,
        query: CollectionQuery,
        access: Access = Depends(require_permission(f"users.{relation}.read", allow_self=True)),
        repo: UserRepository = Depends(get_user_repository),
    ):
        access.require_own(user_id, [access.user_id])
        fields = validate_fields(relation, query)
        page = await repo.list_related(relation, user_id, query)
        return collection_document(
            relation, page, RELATED_ATTRIBUTES[relation], request.url, api_base(request), fields
        )

    router.add_api_route(
        f"/{{user_id}}/{relation}", list_related, methods=["GET"],
        response_model=CollectionDocument, name=f"list_users_{relation}",
    )


for _relation in RELATED_ATTRIBUTES:
    _add_related_route(_relation)
