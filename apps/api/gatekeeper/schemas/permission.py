"""
Permission schemas.
"""

from pydantic import Field

from .common import Attributes, RequestBody


class PermissionAttributes(Attributes):
    name: str
    description: str | None = None


class PermissionCreate(RequestBody):
    """Permission create request."""
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)


class PermissionUpdate(RequestBody):
    """Permission update request (partial)."""
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
