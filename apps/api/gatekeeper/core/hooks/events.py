"""
Typed event payloads dispatched through the hook manager.

Hook names follow ``<resource>.<action>`` (``group.create``,
``role.permissions.grant``); the payload type says what the listener gets.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
import uuid

from gatekeeper.utils.timezone import utc_now


@dataclass(frozen=True)
class Event:
    """Base event structure."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()), kw_only=True)
    timestamp: datetime = field(default_factory=utc_now, kw_only=True)


@dataclass(frozen=True)
class AuthSucceeded(Event):
    """A login or refresh issued a new token pair."""
    user_id: str
    client_ip: str | None = None
    method: str = "login"  # "login" or "refresh"


@dataclass(frozen=True)
class ResourceCreated(Event):
    resource_type: str
    resource_id: str


@dataclass(frozen=True)
class ResourceUpdated(Event):
    resource_type: str
    resource_id: str
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResourceDeleted(Event):
    resource_type: str
    resource_id: str


@dataclass(frozen=True)
class GrantsChanged(Event):
    """Children were granted to or revoked from a parent resource."""
    resource_type: str
    resource_id: str
    relation: str  # e.g. "permissions", "users"
    action: str  # "grant" or "revoke"
    ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class WebhookReceived(Event):
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    client_ip: str | None = None


def hook_name(event: Event) -> str:
    """Derive the hook name an event is dispatched under."""
    if isinstance(event, AuthSucceeded):
        return "auth.success"
    if isinstance(event, ResourceCreated):
        return f"{event.resource_type}.create"
    if isinstance(event, ResourceUpdated):
        return f"{event.resource_type}.update"
    if isinstance(event, ResourceDeleted):
        return f"{event.resource_type}.delete"
    if isinstance(event, GrantsChanged):
        return f"{event.resource_type}.{event.relation}.{event.action}"
    if isinstance(event, WebhookReceived):
        return "webhook.received"
    return type(event).__name__
