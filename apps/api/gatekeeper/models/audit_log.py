"""Audit log model for authentication outcomes and security events."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.models.base import Base, IdMixin


class AuditLog(Base, IdMixin):
    """
    Immutable audit log entry.

    actor_id is not a foreign key: entries outlive users and
    failed logins have no actor at all.
    """

    __tablename__ = "audit_logs"

    # Who performed the action
    actor_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    actor_ip: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 max length

    # What was affected
    resource_type: Mapped[str] = mapped_column(String(100))  # e.g., "auth", "user"
    resource_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # What happened
    action: Mapped[str] = mapped_column(String(50))  # "login", "refresh", ...
    outcome: Mapped[str] = mapped_column(String(50))  # "success" or a failure code

    extra_data: Mapped[Optional[dict[str, Any]]] = mapped_column(nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Request context
    request_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action}:{self.outcome} {self.resource_type}:{self.resource_id}>"
