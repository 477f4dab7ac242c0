"""
Hook manager for lifecycle events.
"""
from __future__ import annotations

from typing import Callable, Any, Awaitable, TypeVar, ParamSpec
from dataclasses import dataclass, field
from enum import IntEnum
from collections import defaultdict
import logging

from .events import Event, hook_name

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

EventHandler = Callable[[Event], Awaitable[Any]]


class HookPriority(IntEnum):
    """Hook execution priority (lower runs first)."""
    FIRST = 0
    EARLY = 25
    NORMAL = 50
    LATE = 75
    LAST = 100


@dataclass
class Hook:
    """Registered hook information."""
    name: str
    handler: EventHandler
    priority: HookPriority = HookPriority.NORMAL
    once: bool = False  # Run only once then unregister
    source: str = ""  # Module that registered this


@dataclass
class HookResult:
    """Result from running hooks."""
    hook_name: str
    results: list[Any] = field(default_factory=list)
    errors: list[tuple[str, Exception]] = field(default_factory=list)


class HookManager:
    """
    Dispatches typed events to registered listeners.

    Handlers run sequentially in priority order, after the change that
    caused the event has been committed. A failing handler is logged and
    never fails the request that emitted the event.

    Hooks emitted by the application:
    - app.startup / app.shutdown
    - auth.success: AuthSucceeded
    - <resource>.create / .update / .delete: ResourceCreated/Updated/Deleted
    - <resource>.<relation>.grant / .revoke: GrantsChanged
    - webhook.received: WebhookReceived

    Example usage:
    ```python
    hooks = HookManager()

    @hooks.on("auth.success")
    async def reset_login_bucket(event: AuthSucceeded):
        await rate_limiter.reset(f"auth-{event.client_ip}", 5)

    await hooks.dispatch(AuthSucceeded(user_id=user.id))
    ```
    """

    def __init__(self):
        self._hooks: dict[str, list[Hook]] = defaultdict(list)

    def register(
        self,
        name: str,
        handler: EventHandler,
        *,
        priority: HookPriority = HookPriority.NORMAL,
        once: bool = False,
        source: str = "",
    ) -> Hook:
        """Register a hook handler."""
        hook = Hook(
            name=name,
            handler=handler,
            priority=priority,
            once=once,
            source=source,
        )

        self._hooks[name].append(hook)
        # Sort by priority
        self._hooks[name].sort(key=lambda h: h.priority)

        logger.debug(f"Registered hook: {name} (priority={priority})")
        return hook

    def unregister(self, name: str, handler: Callable) -> bool:
        """Unregister a hook handler."""
        hooks = self._hooks.get(name, [])
        for i, hook in enumerate(hooks):
            if hook.handler is handler:
                del hooks[i]
                return True
        return False

    def on(
        self,
        name: str,
        *,
        priority: HookPriority = HookPriority.NORMAL,
        once: bool = False,
    ) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
        """Decorator to register a hook handler."""
        def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
            self.register(name, func, priority=priority, once=once)
            return func
        return decorator

    async def trigger(
        self,
        name: str,
        *args,
        **kwargs,
    ) -> HookResult:
        """
        Trigger all handlers for a hook.

        Args:
            name: Hook name to trigger
            *args, **kwargs: Passed to handlers
        """
        result = HookResult(hook_name=name)
        hooks_to_remove = []

        for hook in list(self._hooks.get(name, [])):
            try:
                handler_result = await hook.handler(*args, **kwargs)
                result.results.append(handler_result)

                if hook.once:
                    hooks_to_remove.append(hook)

            except Exception as e:
                result.errors.append((hook.source or str(hook.handler), e))
                logger.exception(f"Hook {name} handler error: {e}")

        # Remove once-hooks
        for hook in hooks_to_remove:
            self._hooks[name].remove(hook)

        return result

    async def dispatch(self, event: Event) -> HookResult:
        """Trigger the hook an event belongs to, passing the event."""
        return await self.trigger(hook_name(event), event)

    def has_hooks(self, name: str) -> bool:
        """Check if any hooks are registered for name."""
        return bool(self._hooks.get(name))
