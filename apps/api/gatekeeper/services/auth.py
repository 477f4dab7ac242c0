"""
Authentication service.

Login and refresh-token rotation. A successful login or refresh issues a
signed access token (JWT) and a new opaque refresh token; the refresh
token is stored as the user's ``_refresh_token`` metadata, replacing any
previous one.
"""

import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Callable, NoReturn

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import AuthSettings
from gatekeeper.core.exceptions import (
    AccountDisabledError,
    AuthenticationError,
    ExpiredTokenError,
    GatekeeperError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from gatekeeper.core.hooks import AuthSucceeded, HookManager
from gatekeeper.core.security import PasswordHasher, generate_refresh_token
from gatekeeper.models.user import User
from gatekeeper.repositories.user import UserRepository
from gatekeeper.services.audit import AuditAction, AuditLogService, AuditOutcome

logger = structlog.get_logger()

REFRESH_TOKEN_META_KEY = "_refresh_token"


@dataclass
class TokenPair:
    """Access and refresh token pair."""
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass
class StoredRefreshToken:
    """A user's refresh token record."""
    token: str
    created_at: int

    @classmethod
    def parse(cls, raw: str) -> "StoredRefreshToken | None":
        """Parse the stored JSON; None if malformed."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        token = data.get("token")
        created_at = data.get("created_at")
        if not isinstance(token, str) or not token:
            return None
        if not isinstance(created_at, int) or isinstance(created_at, bool):
            return None
        return cls(token=token, created_at=created_at)

    def dumps(self) -> str:
        return json.dumps({"token": self.token, "created_at": self.created_at})

    def is_expired(self, now: float, lifetime: int) -> bool:
        return now - self.created_at > lifetime


def decode_access_token(token: str, config: AuthSettings) -> dict[str, Any]:
    """
    Fully validate an access token (signature and expiry).

    Raises:
        ExpiredTokenError: Token has expired
        InvalidTokenError: Anything else wrong with the token
    """
    try:
        claims = jwt.decode(token, config.secret_key, algorithms=[config.algorithm])
    except ExpiredSignatureError:
        raise ExpiredTokenError()
    except JWTError:
        raise InvalidTokenError()

    if not isinstance(claims.get("user_id"), str):
        raise InvalidTokenError()
    return claims


class AuthService:
    """
    Authentication service.

    Every outcome is written to the audit log. Failures never say whether
    the login or the password was wrong.
    """

    def __init__(
        self,
        db: AsyncSession,
        config: AuthSettings,
        hasher: PasswordHasher,
        hooks: HookManager,
        *,
        rate_limit: int,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.config = config
        self.hasher = hasher
        self.hooks = hooks
        self.rate_limit = rate_limit
        self.clock = clock
        self.users = UserRepository(db)
        self.audit = AuditLogService(db)

    # ------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------

    def create_access_token(
        self,
        user: User,
        group_ids: list[str],
        issuer: str,
        now: int,
    ) -> str:
        """Create a signed JWT access token."""
        payload = {
            "iss": issuer,
            "sub": user.login,
            "iat": now,
            "nbf": now,
            "exp": now + self.config.access_token_lifetime,
            "user_id": user.id,
            "groups": group_ids,
            "rate_limit": self.rate_limit,
        }
        return jwt.encode(payload, self.config.secret_key, algorithm=self.config.algorithm)

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """Fully validate an access token (signature and expiry)."""
        return decode_access_token(token, self.config)

    def _user_id_from_signature(self, token: str) -> str:
        """Recover the user ID from a possibly expired access token."""
        try:
            claims = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
            )
        except JWTError:
            raise InvalidTokenError()

        user_id = claims.get("user_id")
        if not isinstance(user_id, str):
            raise InvalidTokenError()
        return user_id

    async def _issue(self, user: User, *, action: str, issuer: str, client_ip: str | None) -> TokenPair:
        """Rotate the refresh token and sign a new access token."""
        now = int(self.clock())
        stored = StoredRefreshToken(token=generate_refresh_token(), created_at=now)
        await self.users.set_meta(user.id, REFRESH_TOKEN_META_KEY, stored.dumps())

        group_ids = await self.users.group_ids(user.id)
        access_token = self.create_access_token(user, group_ids, issuer, now)

        await self.audit.log(
            action=action,
            resource_type="auth",
            resource_id=user.id,
            outcome=AuditOutcome.SUCCESS,
            actor_id=user.id,
            actor_ip=client_ip,
        )
        logger.info("Authentication succeeded", action=action, user_id=user.id, client_ip=client_ip)

        await self.hooks.dispatch(AuthSucceeded(user_id=user.id, client_ip=client_ip, method=action))

        return TokenPair(
            access_token=access_token,
            refresh_token=stored.token,
            expires_in=self.config.access_token_lifetime,
        )

    async def _reject(
        self,
        error: GatekeeperError,
        *,
        action: str,
        client_ip: str | None,
        actor_id: str | None = None,
    ) -> NoReturn:
        """Audit a failed attempt, then raise."""
        await self.audit.log(
            action=action,
            resource_type="auth",
            resource_id=actor_id,
            outcome=error.code,
            actor_id=actor_id,
            actor_ip=client_ip,
        )
        logger.warning("Authentication failed", action=action, reason=error.code, client_ip=client_ip)
        raise error

    # ------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------

    async def login(
        self,
        login: str,
        password: str,
        *,
        issuer: str,
        client_ip: str | None = None,
    ) -> TokenPair:
        """
        Authenticate with login and password.

        Raises:
            InvalidCredentialsError: Unknown login or wrong password
            AccountDisabledError: Correct password, disabled account
        """
        action = AuditAction.LOGIN
        user = await self.users.get_by_login(login)

        if user is None:
            # Same bcrypt cost as a real mismatch
            self.hasher.verify_dummy(password)
            await self._reject(InvalidCredentialsError(), action=action, client_ip=client_ip)

        if not self.hasher.verify(password, user.password):
            await self._reject(
                InvalidCredentialsError(), action=action, client_ip=client_ip, actor_id=user.id
            )

        if not user.enabled:
            await self._reject(
                AccountDisabledError(), action=action, client_ip=client_ip, actor_id=user.id
            )

        return await self._issue(user, action=action, issuer=issuer, client_ip=client_ip)

    async def refresh(
        self,
        access_token: str,
        refresh_token: str,
        *,
        issuer: str,
        client_ip: str | None = None,
    ) -> TokenPair:
        """
        Exchange a refresh token for a new token pair.

        The access token only has to carry a valid signature; it may have
        expired. The refresh token is single use.

        Raises:
            InvalidTokenError: Bad signature, or no usable stored token
            InvalidCredentialsError: Refresh token does not match (nothing changes)
            ExpiredTokenError: Refresh token matched but is too old (it is deleted)
            AccountDisabledError: Account is disabled
        """
        action = AuditAction.REFRESH
        try:
            user_id = self._user_id_from_signature(access_token)
        except AuthenticationError as e:
            await self._reject(e, action=action, client_ip=client_ip)

        raw = await self.users.get_meta(user_id, REFRESH_TOKEN_META_KEY)
        if raw is None:
            await self._reject(InvalidTokenError(), action=action, client_ip=client_ip, actor_id=user_id)

        stored = StoredRefreshToken.parse(raw)
        if stored is None:
            await self.users.delete_meta(user_id, REFRESH_TOKEN_META_KEY)
            await self._reject(InvalidTokenError(), action=action, client_ip=client_ip, actor_id=user_id)

        if not hmac.compare_digest(stored.token.encode(), refresh_token.encode()):
            await self._reject(
                InvalidCredentialsError(), action=action, client_ip=client_ip, actor_id=user_id
            )

        if stored.is_expired(self.clock(), self.config.refresh_token_lifetime):
            await self.users.delete_meta(user_id, REFRESH_TOKEN_META_KEY)
            await self._reject(ExpiredTokenError(), action=action, client_ip=client_ip, actor_id=user_id)

        user = await self.users.get_by_id(user_id)
        if user is None:
            await self._reject(InvalidTokenError(), action=action, client_ip=client_ip, actor_id=user_id)

        if not user.enabled:
            await self._reject(
                AccountDisabledError(), action=action, client_ip=client_ip, actor_id=user_id
            )

        return await self._issue(user, action=action, issuer=issuer, client_ip=client_ip)

