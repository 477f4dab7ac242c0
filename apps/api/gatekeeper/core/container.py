"""
Dependency injection container.
Builds every long-lived collaborator once, from settings.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from gatekeeper.core.config import Settings
from gatekeeper.core.hooks import AuthSucceeded, HookManager, HookPriority
from gatekeeper.core.security import PasswordHasher
from gatekeeper.models.database import close_db, create_engine, create_session_factory
from gatekeeper.services.rate_limit import (
    BucketStore,
    DatabaseBucketStore,
    RateLimiter,
    RedisBucketStore,
)

logger = structlog.get_logger()


@dataclass
class Container:
    """
    Dependency injection container.

    Holds the process-wide instances. Stored on ``app.state.container``;
    request dependencies read it from there, never from a global.

    Example:
    ```python
    container = Container.from_settings(get_settings())
    async with container.session_factory() as db:
        ...
    await container.rate_limiter.enforce(f"public-{ip}", 100)
    ```
    """

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    hooks: HookManager
    hasher: PasswordHasher
    rate_limiter: RateLimiter

    @classmethod
    def from_settings(cls, settings: Settings) -> Container:
        """Build a container with the configured backends."""
        engine = create_engine(settings.database)
        session_factory = create_session_factory(engine)

        store: BucketStore
        if settings.api.rate_limit_backend == "redis":
            store = RedisBucketStore.from_url(settings.redis.url, ttl=settings.api.bucket_ttl)
        else:
            store = DatabaseBucketStore(session_factory)

        container = cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            hooks=HookManager(),
            hasher=PasswordHasher(
                settings.auth.pepper,
                rounds=settings.auth.password_hash_rounds,
            ),
            rate_limiter=RateLimiter(store, enabled=settings.api.rate_limit_enabled),
        )
        register_listeners(container)
        return container

    async def shutdown(self) -> None:
        """Release connections."""
        if isinstance(self.rate_limiter.store, RedisBucketStore):
            await self.rate_limiter.store.close()
        await close_db(self.engine)


def register_listeners(container: Container) -> None:
    """Subscribe the built-in listeners."""
    auth_limit = container.settings.api.auth_rate_limit

    async def reset_auth_bucket(event: AuthSucceeded) -> None:
        # A successful login gives back the attempts it consumed
        if event.client_ip:
            await container.rate_limiter.reset(f"auth-{event.client_ip}", auth_limit)

    container.hooks.register(
        "auth.success",
        reset_auth_bucket,
        priority=HookPriority.EARLY,
        source="rate_limit",
    )
