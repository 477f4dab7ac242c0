"""
Shared route helpers.
"""

from typing import Callable

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
from gatekeeper.core.hooks import GrantsChanged
from gatekeeper.repositories import UserRepository
from gatekeeper.schemas.common import Attributes, CollectionDocument, RequestBody, collection_document
from gatekeeper.utils.pagination import validate_fields

logger = structlog.get_logger()

API_PREFIX = "/v1"


def api_base(request: Request) -> str:
    """Absolute base URL of the versioned API."""
    return str(request.base_url).rstrip("/") + API_PREFIX


async def check_own(
    access: Access,
    users: UserRepository,
    relation: str,
    resource_id: str,
) -> None:
    """For self-scoped access, require the resource to be one of the caller's."""
    if not access.is_global:
        access.require_own(resource_id, await users.granted_ids(relation, access.user_id))


async def own_ids(access: Access, users: UserRepository, relation: str) -> list[str] | None:
    """IDs a self-scoped caller may list (None when unrestricted)."""
    if access.is_global:
        return None
    return await users.granted_ids(relation, access.user_id)


def add_grant_routes(
    router: APIRouter,
    *,
    resource: str,
    event_type: str,
    relation: str,
    child_attributes: type[Attributes],
    body_model: type[RequestBody],
    get_repository: Callable,
    own_relation: str | None = None,
    self_write: bool = False,
) -> None:
    """
    Add GET/POST/DELETE ``/{parent_id}/<relation>`` grant routes.

    ``own_relation`` (a UserRepository relation) enables ``self.`` access
    for reads, limited to parents the caller belongs to; ``self_write``
    extends it to grant and revoke.
    """
    path = f"/{{parent_id}}/{relation}"
    allow_self_read = own_relation is not None
    allow_self_write = allow_self_read and self_write

    async def list_granted(
        parent_id: str,
        request: Request,
        query: CollectionQuery,
        access: Access = Depends(require_permission(f"{resource}.{relation}.read", allow_self=allow_self_read)),
        repo=Depends(get_repository),
        users: UserRepository = Depends(get_user_repository),
    ):
        await check_own(access, users, own_relation, parent_id)
        fields = validate_fields(relation, query)
        page = await repo.list_related(relation, parent_id, query)
        return collection_document(relation, page, child_attributes, request.url, api_base(request), fields)

    async def grant(
        parent_id: str,
        body: body_model,
        hooks: Hooks,
        access: Access = Depends(require_permission(f"{resource}.{relation}.grant", allow_self=allow_self_write)),
        repo=Depends(get_repository),
        users: UserRepository = Depends(get_user_repository),
    ):
        await check_own(access, users, own_relation, parent_id)
        granted = await repo.grant(relation, parent_id, getattr(body, relation))
        logger.info(
            "Grants added", resource_type=event_type, relation=relation, id=parent_id, granted=granted
        )
        await hooks.dispatch(GrantsChanged(
            resource_type=event_type,
            resource_id=parent_id,
            relation=relation,
            action="grant",
            ids=tuple(granted),
        ))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    async def revoke(
        parent_id: str,
        body: body_model,
        hooks: Hooks,
        access: Access = Depends(require_permission(f"{resource}.{relation}.revoke", allow_self=allow_self_write)),
        repo=Depends(get_repository),
        users: UserRepository = Depends(get_user_repository),
    ):
        await check_own(access, users, own_relation, parent_id)
        ids = getattr(body, relation)
        await repo.revoke(relation, parent_id, ids)
        logger.info(
            "Grants revoked", resource_type=event_type, relation=relation, id=parent_id, revoked=ids
        )
        await hooks.dispatch(GrantsChanged(
            resource_type=event_type,
            resource_id=parent_id,
            relation=relation,
            action="revoke",
            ids=tuple(ids),
        ))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    router.add_api_route(
        path, list_granted, methods=["GET"],
        response_model=CollectionDocument, name=f"list_{resource}_{relation}",
    )
    router.add_api_route(
        path, grant, methods=["POST"],
        status_code=status.HTTP_204_NO_CONTENT, name=f"grant_{resource}_{relation}",
    )
    router.add_api_route(
        path, revoke, methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT, name=f"revoke_{resource}_{relation}",
    )
