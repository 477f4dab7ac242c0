"""
Organization routes.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from gatekeeper.api.dependencies import (
    Access,
    CollectionQuery,
    Hooks,
    get_organization_repository,
    get_user_repository,
    require_permission,
)
from gatekeeper.core.exceptions import NotFoundError
from gatekeeper.core.hooks import ResourceCreated, ResourceDeleted, ResourceUpdated
from gatekeeper.repositories import OrganizationRepository, UserRepository
from gatekeeper.schemas import (
    CollectionDocument,
    OrganizationAttributes,
    OrganizationCreate,
    OrganizationUpdate,
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

RESOURCE = "organizations"


@router.get("", response_model=CollectionDocument)
async def list_organizations(
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("organizations.read", allow_self=True)),
    repo: OrganizationRepository = Depends(get_organization_repository),
    users: UserRepository = Depends(get_user_repository),
):
    """List organizations (only the caller's own with self.organizations.read)."""
    fields = validate_fields(RESOURCE, query)
    page = await repo.list(query, restrict_ids=await own_ids(access, users, "organizations"))
    return collection_document(RESOURCE, page, OrganizationAttributes, request.url, api_base(request), fields)


@router.post("", response_model=ResourceDocument, status_code=status.HTTP_201_CREATED)
async def create_organization(
    request: Request,
    data: OrganizationCreate,
    hooks: Hooks,
    _: Access = Depends(require_permission("organizations.create")),
    repo: OrganizationRepository = Depends(get_organization_repository),
):
    """Create an organization; its owner becomes a member."""
    organization_id = await repo.create(data.model_dump(exclude_unset=True))
    logger.info("Organization created", id=organization_id)
    await hooks.dispatch(ResourceCreated(resource_type="organization", resource_id=organization_id))
    return resource_document(
        RESOURCE, await repo.get(organization_id), OrganizationAttributes, api_base(request)
    )


@router.get("/{organization_id}", response_model=ResourceDocument)
async def get_organization(
    organization_id: str,
    request: Request,
    query: CollectionQuery,
    access: Access = Depends(require_permission("organizations.read", allow_self=True)),
    repo: OrganizationRepository = Depends(get_organization_repository),
    users: UserRepository = Depends(get_user_repository),
):
    """Get organization by ID."""
    await check_own(access, users, "organizations", organization_id)
    fields = validate_fields(RESOURCE, query)
    organization = await repo.get(organization_id)
    return resource_document(RESOURCE, organization, OrganizationAttributes, api_base(request), fields)


@router.patch("/{organization_id}", response_model=ResourceDocument)
async def update_organization(
    organization_id: str,
    request: Request,
    data: OrganizationUpdate,
    hooks: Hooks,
    _: Access = Depends(require_permission("organizations.update")),
    repo: OrganizationRepository = Depends(get_organization_repository),
):
    """Update organization."""
    fields = data.model_dump(exclude_unset=True)
    organization = await repo.update(organization_id, fields)
    logger.info("Organization updated", id=organization_id, fields=sorted(fields))
    await hooks.dispatch(ResourceUpdated(
        resource_type="organization", resource_id=organization_id, fields=tuple(sorted(fields)),
    ))
    return resource_document(RESOURCE, organization, OrganizationAttributes, api_base(request))


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    organization_id: str,
    hooks: Hooks,
    _: Access = Depends(require_permission("organizations.delete")),
    repo: OrganizationRepository = Depends(get_organization_repository),
):
    """Delete organization, with its groups and roles."""
    if not await repo.delete(organization_id):
        raise NotFoundError(f"Organization {organization_id} does not exist")
    logger.info("Organization deleted", id=organization_id)
    await hooks.dispatch(ResourceDeleted(resource_type="organization", resource_id=organization_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


add_grant_routes(
    router,
    resource=RESOURCE,
    event_type="organization",
    relation="permissions",
    child_attributes=PermissionAttributes,
    body_model=PermissionIdsRequest,
    get_repository=get_organization_repository,
    own_relation="organizations",
)
add_grant_routes(
    router,
    resource=RESOURCE,
    event_type="organization",
    relation="users",
    child_attributes=UserAttributes,
    body_model=UserIdsRequest,
    get_repository=get_organization_repository,
    own_relation="organizations",
)
