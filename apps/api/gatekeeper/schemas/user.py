"""
User schemas.
"""

from typing import Any
from pydantic import EmailStr, Field

from .common import Attributes, RequestBody, Timestamp


class UserAttributes(Attributes):
    """User attributes; the password hash is never exposed."""
    login: str
    email: str | None = None
    attributes: dict[str, Any] | None = None
    enabled: bool
    created_at: Timestamp
    updated_at: Timestamp


class UserCreate(RequestBody):
    """User create request."""
    login: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    attributes: dict[str, Any] | None = None
    enabled: bool = True


class UserUpdate(RequestBody):
    """User update request (partial)."""
    login: str | None = Field(None, min_length=1, max_length=255)
    password: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    attributes: dict[str, Any] | None = None
    enabled: bool | None = None
