"""
Permission routes.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from gatekeeper.api.dependencies import (
    Access,
    CollectionQuery,
    Hooks,
    get_permission_repository,
    require_permission,
)
from gatekeeper.core.exceptions import NotFoundError
from gatekeeper.core.hooks import ResourceCreated, ResourceDeleted, ResourceUpdated
from gatekeeper.repositories import PermissionRepository
from gatekeeper.schemas import (
    CollectionDocument,
    PermissionAttributes,
    PermissionCreate,
    PermissionUpdate,
    ResourceDocument,
    collection_document,
    resource_document,
)
from gatekeeper.utils.pagination import validate_fields
from .common import api_base

logger = structlog.get_logger()

router = APIRouter()

RESOURCE = "permissions"


@router.get("", response_model=CollectionDocument)
async def list_permissions(
    request: Request,
    query: CollectionQuery,
    _: Access = Depends(require_permission("permissions.read")),
    repo: PermissionRepository = Depends(get_permission_repository),
):
    """List permissions."""
    fields = validate_fields(RESOURCE, query)
    page = await repo.list(query)
    return collection_document(RESOURCE, page, PermissionAttributes, request.url, api_base(request), fields)


@router.post("", response_model=ResourceDocument, status_code=status.HTTP_201_CREATED)
async def create_permission(
    request: Request,
    data: PermissionCreate,
    hooks: Hooks,
    _: Access = Depends(require_permission("permissions.create")),
    repo: PermissionRepository = Depends(get_permission_repository),
):
    permission_id = await repo.create(data.model_dump(exclude_unset=True))
    logger.info("Permission created", id=permission_id)
    await hooks.dispatch(ResourceCreated(resource_type="permission", resource_id=permission_id))
    return resource_document(
        RESOURCE, await repo.get(permission_id), PermissionAttributes, api_base(request)
    )


@router.get("/{permission_id}", response_model=ResourceDocument)
async def get_permission(
    permission_id: str,
    request: Request,
    query: CollectionQuery,
    _: Access = Depends(require_permission("permissions.read")),
    repo: PermissionRepository = Depends(get_permission_repository),
):
    fields = validate_fields(RESOURCE, query)
    permission = await repo.get(permission_id)
    return resource_document(RESOURCE, permission, PermissionAttributes, api_base(request), fields)


@router.patch("/{permission_id}", response_model=ResourceDocument)
async def update_permission(
    permission_id: str,
    request: Request,
    data: PermissionUpdate,
    hooks: Hooks,
    _: Access = Depends(require_permission("permissions.update")),
    repo: PermissionRepository = Depends(get_permission_repository),
):
    fields = data.model_dump(exclude_unset=True)
    permission = await repo.update(permission_id, fields)
    logger.info("Permission updated", id=permission_id, fields=sorted(fields))
    await hooks.dispatch(ResourceUpdated(
        resource_type="permission", resource_id=permission_id, fields=tuple(sorted(fields)),
    ))
    return resource_document(RESOURCE, permission, PermissionAttributes, api_base(request))


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(
    permission_id: str,
    hooks: Hooks,
    _: Access = Depends(require_permission("permissions.delete")),
    repo: PermissionRepository = Depends(get_permission_repository),
):
    """Delete permission; it is revoked everywhere it was granted."""
    if not await repo.delete(permission_id):
        raise NotFoundError(f"Permission {permission_id} does not exist")
    logger.info("Permission deleted", id=permission_id)
    await hooks.dispatch(ResourceDeleted(resource_type="permission", resource_id=permission_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
