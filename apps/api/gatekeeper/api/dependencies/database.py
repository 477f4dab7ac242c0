"""
Database dependencies.
"""

from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.container import Container


def get_container(request: Request) -> Container:
    """The application's container (built by create_app)."""
    return request.app.state.container


async def get_db(
    container: Container = Depends(get_container),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with container.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
