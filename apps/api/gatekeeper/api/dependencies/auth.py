"""
Authentication and authorization dependencies.

Usage:
    from gatekeeper.api.dependencies.auth import CurrentAuth, require_permission

    @router.get("/groups")
    async def list_groups(access: Access = Depends(require_permission("groups.read", allow_self=True))):
        ...
"""

from dataclasses import dataclass, field
from typing import Annotated, Callable

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.container import Container
from gatekeeper.core.exceptions import (
    AccountDisabledError,
    InvalidTokenError,
    PermissionDeniedError,
)
from gatekeeper.repositories.user import UserRepository
from gatekeeper.services.auth import decode_access_token
from gatekeeper.utils.context import set_context_user
from .database import get_container, get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/v1/auth/login", auto_error=False)


@dataclass
class AuthContext:
    """The authenticated caller, passed to handlers."""

    user_id: str
    login: str
    group_ids: list[str] = field(default_factory=list)
    permissions: frozenset[str] = frozenset()
    rate_limit: int = 0

    def has(self, *names: str) -> bool:
        """True if the caller holds every named permission."""
        return all(name in self.permissions for name in names)


@dataclass
class Access:
    """
    Outcome of a permission check.

    ``is_global`` is False when the caller was only allowed through a
    ``self.`` permission; the handler must then limit itself to the
    caller's own resources.
    """

    context: AuthContext
    is_global: bool

    @property
    def user_id(self) -> str:
        return self.context.user_id

    def require_own(self, resource_id: str, own_ids: list[str]) -> None:
        """Deny access to a resource outside the caller's own set."""
        if not self.is_global and resource_id not in own_ids:
            raise PermissionDeniedError()


async def get_auth_context(
    token: str | None = Depends(oauth2_scheme),
    container: Container = Depends(get_container),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """
    Authenticate the bearer token and enforce the caller's rate limit.

    Raises:
        InvalidTokenError / ExpiredTokenError: Missing or bad token
        RateLimitExceededError: Per-user limit from the token exceeded
        AccountDisabledError: The account was disabled after issue
    """
    if not token:
        raise InvalidTokenError("Unable to authenticate: missing access token")

    claims = decode_access_token(token, container.settings.auth)
    user_id = claims["user_id"]
    rate_limit = claims.get("rate_limit")
    if not isinstance(rate_limit, int):
        rate_limit = container.settings.api.rate_limit

    await container.rate_limiter.enforce(user_id, rate_limit)

    users = UserRepository(db)
    user = await users.get_by_id(user_id)
    if user is None:
        raise InvalidTokenError()
    if not user.enabled:
        raise AccountDisabledError()

    set_context_user(user.id)

    return AuthContext(
        user_id=user.id,
        login=user.login,
        group_ids=list(claims.get("groups") or []),
        permissions=frozenset(await users.get_effective_permissions(user.id)),
        rate_limit=rate_limit,
    )


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]


def require_permission(path: str, *, allow_self: bool = False) -> Callable:
    """
    Dependency factory for permission checks.

    Grants access with ``global.<path>``; with allow_self, also with
    ``self.<path>`` (limited to the caller's own resources).

    Usage:
    ```python
    @router.delete("/{group_id}")
    async def delete_group(
        group_id: str,
        access: Access = Depends(require_permission("groups.delete")),
    ):
        ...
    ```
    """

    async def check(context: CurrentAuth) -> Access:
        if context.has(f"global.{path}"):
            return Access(context=context, is_global=True)
        if allow_self and context.has(f"self.{path}"):
            return Access(context=context, is_global=False)
        raise PermissionDeniedError(f"Insufficient permissions: {path}")

    return check
