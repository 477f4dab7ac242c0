"""
Scheduled maintenance sweeps.

Run daily by the worker (see ``gatekeeper_worker.tasks``). Each sweep
commits its own deletions and returns how many rows it removed.
"""

import time

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.models.rate_limit import RateLimitBucket
from gatekeeper.models.user import UserMeta
from gatekeeper.services.auth import REFRESH_TOKEN_META_KEY, StoredRefreshToken

logger = structlog.get_logger()


async def delete_expired_buckets(
    session: AsyncSession,
    max_age: int = 86400,
    now: float | None = None,
) -> int:
    """Delete rate limit buckets idle for longer than max_age seconds."""
    now = time.time() if now is None else now
    result = await session.execute(
        delete(RateLimitBucket).where(RateLimitBucket.updated_at < now - max_age)
    )
    await session.commit()

    deleted = result.rowcount or 0
    logger.info("Expired rate limit buckets deleted", count=deleted, max_age=max_age)
    return deleted


async def delete_expired_refresh_tokens(
    session: AsyncSession,
    lifetime: int,
    now: float | None = None,
) -> int:
    """Delete refresh tokens older than lifetime seconds, and malformed ones."""
    now = time.time() if now is None else now
    result = await session.execute(
        select(UserMeta).where(UserMeta.meta_key == REFRESH_TOKEN_META_KEY)
    )

    stale_user_ids = []
    for meta in result.scalars():
        stored = StoredRefreshToken.parse(meta.meta_value)
        if stored is None or stored.is_expired(now, lifetime):
            stale_user_ids.append(meta.user_id)

    if stale_user_ids:
        await session.execute(
            delete(UserMeta).where(
                UserMeta.meta_key == REFRESH_TOKEN_META_KEY,
                UserMeta.user_id.in_(stale_user_ids),
            )
        )
    await session.commit()

    logger.info("Expired refresh tokens deleted", count=len(stale_user_ids))
    return len(stale_user_ids)
