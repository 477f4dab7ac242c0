"""
Base model classes and mixins.

Standard mixins:
- IdMixin: generated opaque string primary key
- TimestampMixin: created_at, updated_at (always use)
"""

from datetime import datetime
from typing import Any
from uuid import uuid4
from sqlalchemy import DateTime, String, JSON, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def generate_id() -> str:
    """Generate an opaque entity ID."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    # Common type annotations - all datetimes are timezone-aware
    type_annotation_map = {
        datetime: DateTime(timezone=True),
        dict[str, Any]: JSON,
    }


# ============================================================
# PRIMARY KEY MIXIN
# ============================================================

class IdMixin:
    """
    Mixin for a generated string primary key.

    IDs are UUID4 strings, opaque to clients. Stored as strings so the
    same schema runs on PostgreSQL and SQLite.
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_id,
    )


# ============================================================
# TIMESTAMP MIXIN
# ============================================================

class TimestampMixin:
    """
    Mixin for created_at and updated_at timestamps.

    All timestamps are stored in UTC (timezone-aware).

    Usage:
        class MyModel(Base, IdMixin, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class StandardMixin(IdMixin, TimestampMixin):
    """
    Standard mixin combining id + timestamps.

    Provides:
        - id: generated string primary key
        - created_at: When created (UTC)
        - updated_at: When last modified (UTC)
    """
    pass
