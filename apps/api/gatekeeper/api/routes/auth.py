"""
Authentication routes.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, Request

from gatekeeper.api.dependencies import get_auth_service, get_container, rate_limit
from gatekeeper.core.container import Container
from gatekeeper.schemas import AuthResource, LoginRequest, RefreshRequest
from gatekeeper.schemas.auth import TokenAttributes, TokenResource
from gatekeeper.services.auth import AuthService, TokenPair
from gatekeeper.utils.context import get_client_ip
from gatekeeper.utils.timezone import to_iso8601, utc_now

router = APIRouter()


def _issuer(request: Request, container: Container) -> str:
    return container.settings.auth.issuer or str(request.base_url).rstrip("/")


def _auth_resource(tokens: TokenPair) -> AuthResource:
    now = utc_now()
    expires_at = now + timedelta(seconds=tokens.expires_in)
    return AuthResource(
        data=TokenResource(
            id=to_iso8601(now),
            attributes=TokenAttributes(
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                expires_in=tokens.expires_in,
                expires_at=int(expires_at.timestamp()),
            ),
        )
    )


@router.post(
    "/login",
    response_model=AuthResource,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("auth"))],
)
async def login(
    data: LoginRequest,
    request: Request,
    container: Container = Depends(get_container),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Exchange login and password for a token pair.

    Returns the same 401 for an unknown login and a wrong password.
    """
    tokens = await auth_service.login(
        data.login,
        data.password,
        issuer=_issuer(request, container),
        client_ip=get_client_ip(request),
    )
    return _auth_resource(tokens)


@router.post(
    "/refresh",
    response_model=AuthResource,
    response_model_by_alias=True,
    dependencies=[Depends(rate_limit("auth"))],
)
async def refresh(
    data: RefreshRequest,
    request: Request,
    container: Container = Depends(get_container),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange a refresh token (with the last access token) for a new pair."""
    tokens = await auth_service.refresh(
        data.access_token,
        data.refresh_token,
        issuer=_issuer(request, container),
        client_ip=get_client_ip(request),
    )
    return _auth_resource(tokens)
