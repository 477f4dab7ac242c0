"""
Group schemas.
"""

from typing import Any
from pydantic import Field

from .common import Attributes, RequestBody, Timestamp


class GroupAttributes(Attributes):
    organization_id: str
    name: str
    attributes: dict[str, Any] | None = None
    active: bool
    created_at: Timestamp
    updated_at: Timestamp


class GroupCreate(RequestBody):
    """Group create request."""
    organization_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    attributes: dict[str, Any] | None = None
    active: bool = True


class GroupUpdate(RequestBody):
    """Group update request (partial)."""
    organization_id: str | None = Field(None, min_length=1)
    name: str | None = Field(None, min_length=1, max_length=255)
    attributes: dict[str, Any] | None = None
    active: bool | None = None
