"""
Authentication schemas.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .common import RequestBody


class LoginRequest(RequestBody):
    """Login request: exactly login and password."""
    login: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class RefreshRequest(RequestBody):
    """Refresh request."""
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)


class TokenAttributes(BaseModel):
    """Issued token pair."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    refresh_token: str
    type: str = "Bearer"
    expires_in: int
    expires_at: int


class TokenResource(BaseModel):
    type: str = "token"
    id: str
    attributes: TokenAttributes


class AuthResource(BaseModel):
    """Response to a successful login or refresh."""
    data: TokenResource
