"""
Domain errors.

Every error carries the HTTP status it maps to and a message that is safe
to return to the client. The exception handler in ``gatekeeper.main``
turns them into responses; anything else is a 500.
"""

from typing import Any


class GatekeeperError(Exception):
    """Base class for all expected, recoverable errors."""

    status_code: int = 500
    code: str = "internal_server_error"
    default_message: str = "An error occurred"

    def __init__(self, message: str | None = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class BadRequestError(GatekeeperError):
    status_code = 400
    code = "bad_request"
    default_message = "Invalid request"


class InvalidReferenceError(GatekeeperError):
    """A referenced entity ID does not exist."""

    status_code = 400
    code = "invalid_reference"
    default_message = "Referenced ID does not exist"


class NameConflictError(GatekeeperError):
    status_code = 409
    code = "name_conflict"
    default_message = "Name already exists"


class LoginConflictError(NameConflictError):
    code = "login_conflict"
    default_message = "Login already exists"


class NotFoundError(GatekeeperError):
    status_code = 404
    code = "not_found"
    default_message = "Resource does not exist"


class OwnerConstraintError(GatekeeperError):
    """The owner of an organization cannot be removed from it."""

    status_code = 400
    code = "owner_constraint_violation"
    default_message = "Organization owner cannot be revoked"


class PermissionDeniedError(GatekeeperError):
    status_code = 403
    code = "forbidden"
    default_message = "Insufficient permissions"


# ============================================================
# AUTHENTICATION
# ============================================================

class AuthenticationError(GatekeeperError):
    status_code = 401
    code = "unauthorized"
    default_message = "Unable to authenticate"


class InvalidCredentialsError(AuthenticationError):
    code = "invalid_credentials"
    default_message = "Unable to authenticate: invalid credentials"


class InvalidTokenError(AuthenticationError):
    code = "invalid_token"
    default_message = "Unable to authenticate: invalid access/refresh token"


class ExpiredTokenError(AuthenticationError):
    code = "expired_token"
    default_message = "Unable to authenticate: token has expired"


class AccountDisabledError(GatekeeperError):
    status_code = 403
    code = "account_disabled"
    default_message = "Account is disabled"


class RateLimitExceededError(GatekeeperError):
    status_code = 429
    code = "rate_limit_exceeded"
    default_message = "Too many requests"

    def __init__(
        self,
        message: str | None = None,
        *,
        limit: int = 0,
        retry_after: int = 60,
    ):
        super().__init__(message, limit=limit, retry_after=retry_after)
        self.limit = limit
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "retry_after": self.retry_after}
