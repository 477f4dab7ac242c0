"""
Hook system for lifecycle events.
Lets listeners react to auth and RBAC changes without the emitters knowing them.
"""

from .manager import HookManager, Hook, HookPriority, HookResult
from .events import (
    Event,
    AuthSucceeded,
    ResourceCreated,
    ResourceUpdated,
    ResourceDeleted,
    GrantsChanged,
    WebhookReceived,
    hook_name,
)

__all__ = [
    "HookManager",
    "Hook",
    "HookPriority",
    "HookResult",
    "Event",
    "AuthSucceeded",
    "ResourceCreated",
    "ResourceUpdated",
    "ResourceDeleted",
    "GrantsChanged",
    "WebhookReceived",
    "hook_name",
]
