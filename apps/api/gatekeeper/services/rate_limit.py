"""
Per-identity rate limiting.

Fixed one-minute windows anchored at the first hit. Buckets are durable:
rows in ``rate_limit_buckets`` (default) or Redis hashes. The limiter
never deletes buckets; idle ones are swept by the scheduled maintenance
task (or expire through their Redis TTL).
"""

from __future__ import annotations

import math
import time
from typing import Callable, Protocol

import redis.asyncio as redis
import structlog
from sqlalchemy import case, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatekeeper.core.exceptions import RateLimitExceededError
from gatekeeper.models.rate_limit import RateLimitBucket

logger = structlog.get_logger()

WINDOW_SECONDS = 60

buckets = RateLimitBucket.__table__


class BucketStore(Protocol):
    """Durable, atomically incremented counters."""

    async def hit(self, key: str, now: float, window: int) -> tuple[int, float]:
        """Count one hit; return (count in window, window start)."""
        ...

    async def reset(self, key: str, now: float) -> None:
        """Set a bucket's count back to zero."""
        ...


class DatabaseBucketStore:
    """
    Buckets as rows, incremented with a single UPDATE ... RETURNING.

    The first hit for a key inserts the row; a concurrent first hit that
    loses the insert race retries the update.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def hit(self, key: str, now: float, window: int) -> tuple[int, float]:
        expired = buckets.c.window_started_at <= now - window
        stmt = (
            update(buckets)
            .where(buckets.c.key == key)
            .values(
                count=case((expired, 1), else_=buckets.c.count + 1),
                window_started_at=case((expired, now), else_=buckets.c.window_started_at),
                updated_at=now,
            )
            .returning(buckets.c.count, buckets.c.window_started_at)
        )

        async with self._session_factory() as session:
            for _ in range(3):
                row = (await session.execute(stmt)).first()
                if row is not None:
                    await session.commit()
                    count, started = row
                    return count, started

                try:
                    await session.execute(
                        insert(buckets).values(
                            key=key, count=1, window_started_at=now, updated_at=now
                        )
                    )
                    await session.commit()
                    return 1, now
                except IntegrityError:
                    await session.rollback()

        raise RuntimeError(f"Could not update rate limit bucket {key}")

    async def reset(self, key: str, now: float) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(buckets).where(buckets.c.key == key).values(count=0, updated_at=now)
            )
            await session.commit()


# KEYS[1] bucket key; ARGV: now, window, ttl
_HIT_SCRIPT = """
local started = tonumber(redis.call('HGET', KEYS[1], 'window_started_at'))
local now = tonumber(ARGV[1])
local count
if (not started) or started <= now - tonumber(ARGV[2]) then
    started = now
    count = 1
    redis.call('HSET', KEYS[1], 'count', 1, 'window_started_at', ARGV[1])
else
    count = redis.call('HINCRBY', KEYS[1], 'count', 1)
end
redis.call('HSET', KEYS[1], 'updated_at', ARGV[1])
redis.call('EXPIRE', KEYS[1], tonumber(ARGV[3]))
return {count, tostring(started)}
"""


class RedisBucketStore:
    """
    Buckets as Redis hashes, incremented by a Lua script.

    Idle buckets expire after ``ttl`` seconds.
    """

    def __init__(self, client: redis.Redis, *, prefix: str = "ratelimit:", ttl: int = 86400):
        self.client = client
        self.prefix = prefix
        self.ttl = ttl
        self._hit = client.register_script(_HIT_SCRIPT)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> RedisBucketStore:
        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def hit(self, key: str, now: float, window: int) -> tuple[int, float]:
        count, started = await self._hit(keys=[self._key(key)], args=[repr(now), window, self.ttl])
        return int(count), float(started)

    async def reset(self, key: str, now: float) -> None:
        await self.client.hset(self._key(key), mapping={"count": 0, "updated_at": repr(now)})

    async def close(self) -> None:
        await self.client.aclose()


class RateLimiter:
    """
    Enforces requests-per-minute limits per identity key.

    Usage:
        limiter = RateLimiter(DatabaseBucketStore(session_factory))
        await limiter.enforce(f"auth-{ip}", 5)      # raises on the 6th hit
        await limiter.reset(f"auth-{ip}", 5)
    """

    def __init__(
        self,
        store: BucketStore,
        *,
        clock: Callable[[], float] = time.time,
        window: int = WINDOW_SECONDS,
        enabled: bool = True,
    ):
        self.store = store
        self.clock = clock
        self.window = window
        self.enabled = enabled

    async def enforce(self, key: str, limit_per_minute: int) -> int:
        """
        Count a hit against key.

        Returns the remaining hits in the current window.

        Raises:
            RateLimitExceededError: More than limit_per_minute hits in the
                current window. The window is not restarted.
        """
        if not self.enabled:
            return limit_per_minute

        now = self.clock()
        count, started = await self.store.hit(key, now, self.window)

        if count > limit_per_minute:
            retry_after = max(1, math.ceil(started + self.window - now))
            logger.warning(
                "Rate limit exceeded",
                key=key,
                limit=limit_per_minute,
                count=count,
                retry_after=retry_after,
            )
            raise RateLimitExceededError(limit=limit_per_minute, retry_after=retry_after)

        return limit_per_minute - count

    async def reset(self, key: str, limit_per_minute: int) -> None:
        """Clear the count for key (e.g. after a successful login)."""
        await self.store.reset(key, self.clock())
        logger.debug("Rate limit reset", key=key, limit=limit_per_minute)
