"""
Grant request schemas.
"""

from pydantic import Field

from .common import RequestBody


class PermissionIdsRequest(RequestBody):
    """Grant or revoke permissions by ID."""
    permissions: list[str] = Field(min_length=1)


class UserIdsRequest(RequestBody):
    """Grant or revoke users by ID."""
    users: list[str] = Field(min_length=1)
