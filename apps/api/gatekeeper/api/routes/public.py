"""
Public (unauthenticated) routes.
"""

from fastapi import APIRouter, Depends

from gatekeeper.api.dependencies import get_container, rate_limit
from gatekeeper.core.container import Container
from gatekeeper.utils.timezone import to_iso8601, utc_now

router = APIRouter()


@router.get("/status", dependencies=[Depends(rate_limit("public"))])
async def get_status(container: Container = Depends(get_container)):
    """Service status."""
    return {
        "data": {
            "type": "status",
            "id": to_iso8601(utc_now()),
            "attributes": {"status": "OK", "version": container.settings.app_version},
        }
    }
