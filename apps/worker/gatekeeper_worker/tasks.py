"""
Scheduled maintenance tasks.

Each task opens its own engine; Celery workers do not share the API's
container.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import get_settings
from gatekeeper.models.database import close_db, create_engine, create_session_factory
from gatekeeper.services import maintenance

logger = logging.getLogger(__name__)


async def run_sweep(sweep: Callable[[AsyncSession], Awaitable[int]]) -> int:
    """Run one sweep in a fresh session against the configured database."""
    engine = create_engine(get_settings().database)
    try:
        async with create_session_factory(engine)() as session:
            return await sweep(session)
    finally:
        await close_db(engine)


@shared_task(
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    max_retries=3,
)
def delete_expired_buckets():
    """Delete rate limit buckets idle for longer than the bucket TTL."""
    max_age = get_settings().api.bucket_ttl
    logger.info("Sweeping rate limit buckets older than %ss", max_age)
    deleted = asyncio.run(run_sweep(
        lambda session: maintenance.delete_expired_buckets(session, max_age=max_age)
    ))
    return {"status": "completed", "deleted": deleted}


@shared_task(
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    max_retries=3,
)
def delete_expired_refresh_tokens():
    """Delete stored refresh tokens past their lifetime."""
    lifetime = get_settings().auth.refresh_token_lifetime
    logger.info("Sweeping refresh tokens older than %ss", lifetime)
    deleted = asyncio.run(run_sweep(
        lambda session: maintenance.delete_expired_refresh_tokens(session, lifetime)
    ))
    return {"status": "completed", "deleted": deleted}
