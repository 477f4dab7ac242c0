"""
Group routes.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from gatekeeper.api.dependencies import (
    Access,
    CollectionQuery,
    Hooks,
    get_group_repository,
    get_user_repository,
    require_permission,
)
from gatekeeper.core.exceptions import NotFoundError
from gatekeeper.core.hooks import ResourceCreated, ResourceDeleted, ResourceUpdated
from gatekeeper.repositories import GroupRepository, UserRepository
from gatekeeper.schemas import (
    CollectionDocument,
    GroupAttributes,
    GroupCreate,
    GroupUpdate,
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

RESOURCE = "groups"


@router.get("", response_model=CollectionDocument)
async def list_groups(
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("groups.read", allow_self=True)),
    repo: GroupRepository = Depends(get_group_repository),
    users: UserRepository = Depends(get_user_repository),
):
    """List groups (only the caller's own with self.groups.read)."""
    fields = validate_fields(RESOURCE, query)
    page = await repo.list(query, restrict_ids=await own_ids(access, users, "groups"))
    return collection_document(RESOURCE, page, GroupAttributes, request.url, api_base(request), fields)


@router.post("", response_model=ResourceDocument, status_code=status.HTTP_201_CREATED)
async def create_group(
    request: Request,
    data: GroupCreate,
    hooks: Hooks,
    _: Access = Depends(require_permission("groups.create")),
    repo: GroupRepository = Depends(get_group_repository),
):
    """Create a group within an organization."""
    group_id = await repo.create(data.model_dump(exclude_unset=True))
    logger.info("Group created", id=group_id)
    await hooks.dispatch(ResourceCreated(resource_type="group", resource_id=group_id))
    return resource_document(
        RESOURCE, await repo.get(group_id), GroupAttributes, api_base(request)
    )


@router.get("/{group_id}", response_model=ResourceDocument)
async def get_group(
    group_id: str,
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("groups.read", allow_self=True)),
    repo: GroupRepository = Depends(get_group_repository),
    users: UserRepository = Depends(get_user_repository),
):
    """Get group by ID."""
    await check_own(access, users, "groups", group_id)
    fields = validate_fields(RESOURCE, query)
    group = await repo.get(group_id)
    return resource_document(RESOURCE, group, GroupAttributes, api_base(request), fields)


@router.patch("/{group_id}", response_model=ResourceDocument)
async def update_group(
    group_id: str,
    request: Request,
    data: GroupUpdate,
    hooks: Hooks,
    _: Access = Depends(require_permission("groups.update")),
    repo: GroupRepository = Depends(get_group_repository),
):
    """Update group."""
    fields = data.model_dump(exclude_unset=True)
    group = await repo.update(group_id, fields)
    logger.info("Group updated", id=group_id, fields=sorted(fields))
    await hooks.dispatch(ResourceUpdated(
        resource_type="group", resource_id=group_id, fields=tuple(sorted(fields)),
    ))
    return resource_document(RESOURCE, group, GroupAttributes, api_base(request))


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: str,
    hooks: Hooks,
    _: Access = Depends(require_permission("groups.delete")),
    repo: GroupRepository = Depends(get_group_repository),
):
    """Delete group and its grants."""
    if not await repo.delete(group_id):
        raise NotFoundError(f"Group {group_id} does not exist")
    logger.info("Group deleted", id=group_id)
    await hooks.dispatch(ResourceDeleted(resource_type="group", resource_id=group_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


add_grant_routes(
    router,
    resource=RESOURCE,
    event_type="group",
    relation="permissions",
    child_attributes=PermissionAttributes,
    body_model=PermissionIdsRequest,
    get_repository=get_group_repository,
    own_relation="groups",
)
add_grant_routes(
    router,
    resource=RESOURCE,
    event_type="group",
    relation="users",
    child_attributes=UserAttributes,
    body_model=UserIdsRequest,
    get_repository=get_group_repository,
    own_relation="groups",
    self_write=True,
)
