"""
Rate limit dependencies for unauthenticated endpoints.

Authenticated endpoints are limited per user inside the auth dependency.
"""

from typing import Callable
from fastapi import Depends, Request

from gatekeeper.core.container import Container
from gatekeeper.utils.context import get_client_ip
from .database import get_container


def rate_limit(kind: str) -> Callable:
    """
    Dependency factory limiting requests per client IP.

    kind is one of "auth", "public", "webhook"; the bucket key is
    ``<kind>-<ip>``.

    Usage:
    ```python
    @router.get("/status", dependencies=[Depends(rate_limit("public"))])
    ```
    """

    async def enforce(
        request: Request,
        container: Container = Depends(get_container),
    ) -> None:
        limits = {
            "auth": container.settings.api.auth_rate_limit,
            "public": container.settings.api.public_rate_limit,
            "webhook": container.settings.api.webhook_rate_limit,
        }
        await container.rate_limiter.enforce(f"{kind}-{get_client_ip(request)}", limits[kind])

    return enforce
