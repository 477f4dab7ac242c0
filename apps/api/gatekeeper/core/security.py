"""
Password hashing and token material.

Passwords are peppered with an HMAC of the application pepper before
bcrypt; a hash verifies only with the same pepper.
"""

import hashlib
import hmac
import secrets

from passlib.context import CryptContext


class PasswordHasher:
    """Peppered bcrypt hashing."""

    def __init__(self, pepper: str, rounds: int = 12):
        self._pepper = pepper.encode()
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )
        self._dummy_hash: str | None = None

    def _pepper_password(self, password: str) -> str:
        # Hex digest keeps the input under bcrypt's 72 byte limit
        return hmac.new(self._pepper, password.encode(), hashlib.sha256).hexdigest()

    def hash(self, password: str) -> str:
        """Hash a password."""
        return self._context.hash(self._pepper_password(password))

    def verify(self, password: str, hashed: str) -> bool:
        """Verify password against hash."""
        try:
            return self._context.verify(self._pepper_password(password), hashed)
        except ValueError:
            # Not a recognizable hash
            return False

    def verify_dummy(self, password: str) -> bool:
        """
        Spend the same time as a real verification, then fail.

        Used for logins that do not exist; unknown logins and wrong
        passwords take the same time.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_hex(16))
        self._context.verify(self._pepper_password(password), self._dummy_hash)
        return False


def generate_refresh_token() -> str:
    """Cryptographically random opaque refresh token."""
    return secrets.token_hex(32)
