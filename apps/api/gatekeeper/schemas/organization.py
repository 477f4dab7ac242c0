"""
Organization schemas.
"""

from typing import Any
from pydantic import Field

from .common import Attributes, RequestBody, Timestamp


class OrganizationAttributes(Attributes):
    name: str
    owner_id: str
    attributes: dict[str, Any] | None = None
    active: bool
    created_at: Timestamp
    updated_at: Timestamp


class OrganizationCreate(RequestBody):
    """Organization create request."""
    name: str = Field(min_length=1, max_length=255)
    owner_id: str = Field(min_length=1)
    attributes: dict[str, Any] | None = None
    active: bool = True


class OrganizationUpdate(RequestBody):
    """Organization update request (partial)."""
    name: str | None = Field(None, min_length=1, max_length=255)
    owner_id: str | None = Field(None, min_length=1)
    attributes: dict[str, Any] | None = None
    active: bool | None = None
