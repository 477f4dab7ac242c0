"""
Role schemas.
"""

from typing import Any
from pydantic import Field

from .common import Attributes, RequestBody, Timestamp


class RoleAttributes(Attributes):
    entity_id: str
    name: str
    attributes: dict[str, Any] | None = None
    active: bool
    created_at: Timestamp
    updated_at: Timestamp


class RoleCreate(RequestBody):
    """Role create request."""
    entity_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    attributes: dict[str, Any] | None = None
    active: bool = True


class RoleUpdate(RequestBody):
    """Role update request (partial)."""
    entity_id: str | None = Field(None, min_length=1)
    name: str | None = Field(None, min_length=1, max_length=255)
    attributes: dict[str, Any] | None = None
    active: bool | None = None
