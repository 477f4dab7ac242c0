"""
Role routes.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from gatekeeper.api.dependencies import (
    Access,
    CollectionQuery,
    Hooks,
    get_role_repository,
    get_user_repository,
    require_permission,
)
from gatekeeper.core.exceptions import NotFoundError
from gatekeeper.core.hooks import ResourceCreated, ResourceDeleted, ResourceUpdated
from gatekeeper.repositories import RoleRepository, UserRepository
from gatekeeper.schemas import (
    CollectionDocument,
    RoleAttributes,
    RoleCreate,
    RoleUpdate,
    PermissionAttributes,
    PermissionIdsRequest,
    ResourceDocument,
    UserAttributes,
    UserIdsRequest,
    collection_document,
    resource_document,
)
from gatekeeper.utils.pagination import validate_fields
from .common import add_grant_routes, api_base, check_own, own_ids

logger = structlog.get_logger()

router = APIRouter()

RESOURCE = "roles"


@router.get("", response_model=CollectionDocument)
async def list_roles(
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("roles.read", allow_self=True)),
    repo: RoleRepository = Depends(get_role_repository),
    users: UserRepository = Depends(get_user_repository),
):
    """List roles (only the caller's own with self.roles.read)."""
    fields = validate_fields(RESOURCE, query)
    page = await repo.list(query, restrict_ids=await own_ids(access, users, "roles"))
    return collection_document(RESOURCE, page, RoleAttributes, request.url, api_base(request), fields)


@router.post("", response_model=ResourceDocument, status_code=status.HTTP_201_CREATED)
async def create_role(
    request: Request,
    data: RoleCreate,
    hooks: Hooks,
    _: Access = Depends(require_permission("roles.create")),
    repo: RoleRepository = Depends(get_role_repository),
):
    """Create a role scoped to an organization."""
    role_id = await repo.create(data.model_dump(exclude_unset=True))
    logger.info("Role created", id=role_id)
    await hooks.dispatch(ResourceCreated(resource_type="role", resource_id=role_id))
    return resource_document(
        RESOURCE, await repo.get(role_id), RoleAttributes, api_base(request)
    )


@router.get("/{role_id}", response_model=ResourceDocument)
async def get_role(
    role_id: str,
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("roles.read", allow_self=True)),
    repo: RoleRepository = Depends(get_role_repository),
    users: UserRepository = Depends(get_user_repository),
):
    """Get role by ID."""
    await check_own(access, users, "roles", role_id)
    fields = validate_fields(RESOURCE, query)
    role = await repo.get(role_id)
    return resource_document(RESOURCE, role, RoleAttributes, api_base(request), fields)


@router.patch("/{role_id}", response_model=ResourceDocument)
async def update_role(
    role_id: str,
    request: Request,
    data: RoleUpdate,
    hooks: Hooks,
    _: Access = Depends(require_permission("roles.update")),
    repo: RoleRepository = Depends(get_role_repository),
):
    """Update role."""
    fields = data.model_dump(exclude_unset=True)
    role = await repo.update(role_id, fields)
    logger.info("Role updated", id=role_id, fields=sorted(fields))
    await hooks.dispatch(ResourceUpdated(
        resource_type="role", resource_id=role_id, fields=tuple(sorted(fields)),
    ))
    return resource_document(RESOURCE, role, RoleAttributes, api_base(request))


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: str,
    hooks: Hooks,
    _: Access = Depends(require_permission("roles.delete")),
    repo: RoleRepository = Depends(get_role_repository),
):
    """Delete role and its grants."""
    if not await repo.delete(role_id):
        raise NotFoundError(f"Role {role_id} does not exist")
    logger.info("Role deleted", id=role_id)
    await hooks.dispatch(ResourceDeleted(resource_type="role", resource_id=role_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


add_grant_routes(
    router,
    resource=RESOURCE,
    event_type="role",
    relation="permissions",
    child_attributes=PermissionAttributes,
    body_model=PermissionIdsRequest,
    get_repository=get_role_repository,
    own_relation="roles",
)
add_grant_routes(
    router,
    resource=RESOURCE,
    event_type="role",
    relation="users",
    child_attributes=UserAttributes,
    body_model=UserIdsRequest,
    get_repository=get_role_repository,
    own_relation="roles",
)
