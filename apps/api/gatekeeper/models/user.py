"""
User models.
"""

from typing import Any
from sqlalchemy import String, Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, StandardMixin


class User(Base, StandardMixin):
    """User account model."""

    __tablename__ = "users"

    login: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    # Peppered bcrypt hash, never plaintext
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attributes: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    # Status
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.login}>"


class UserMeta(Base):
    """
    Key/value metadata attached to a user.

    Keys starting with an underscore are reserved for the application
    (``_refresh_token``).
    """

    __tablename__ = "user_meta"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    meta_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    meta_value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<UserMeta user={self.user_id} key={self.meta_key}>"
