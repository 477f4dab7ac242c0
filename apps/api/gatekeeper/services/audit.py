"""Audit log service for authentication outcomes."""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.audit_log import AuditLog
from gatekeeper.utils.context import get_request_id

logger = structlog.get_logger()


class AuditAction:
    """Audited actions."""

    LOGIN = "login"
    REFRESH = "refresh"


class AuditOutcome:
    """Outcome values besides failure codes (which are error codes)."""

    SUCCESS = "success"


class AuditLogService:
    """Service for writing and reading audit logs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        *,
        action: str,
        resource_type: str,
        outcome: str,
        resource_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        actor_ip: Optional[str] = None,
        extra_data: Optional[dict[str, Any]] = None,
        summary: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> AuditLog:
        """
        Create an audit log entry in its own commit.

        Args:
            action: The action performed (use AuditAction constants)
            resource_type: Type of resource affected (e.g., "auth")
            outcome: "success" or the error code of the failure
            resource_id: ID of the affected resource
            actor_id: ID of the user, when known
            actor_ip: IP address of the client
            extra_data: Additional context (never credentials)
            summary: Human-readable summary
            request_id: Request ID for correlation (defaults to the current one)
        """
        entry = AuditLog(
            actor_id=actor_id,
            actor_ip=actor_ip,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            outcome=outcome,
            extra_data=extra_data,
            summary=summary or self._generate_summary(action, outcome, actor_id),
            request_id=request_id or get_request_id(),
        )

        self.db.add(entry)
        await self.db.commit()

        log = logger.info if outcome == AuditOutcome.SUCCESS else logger.warning
        log(
            "Audit log created",
            action=action,
            outcome=outcome,
            resource_type=resource_type,
            actor_id=actor_id,
            actor_ip=actor_ip,
        )

        return entry

    def _generate_summary(self, action: str, outcome: str, actor_id: Optional[str]) -> str:
        """Generate a human-readable summary."""
        actor = actor_id or "Unknown user"
        if outcome == AuditOutcome.SUCCESS:
            return f"{actor} {action} succeeded"
        return f"{actor} {action} failed ({outcome})"

    async def list(
        self,
        *,
        actor_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLog]:
        """List audit logs, newest first."""
        query = select(AuditLog)

        if actor_id:
            query = query.where(AuditLog.actor_id == actor_id)
        if action:
            query = query.where(AuditLog.action == action)

        query = query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())
