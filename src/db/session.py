"""
Async engine and sessions for the back office.

Sessions never expire objects on commit: endpoints commit the deal first
and keep using it while the commission run happens in the same session.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict[str, Any]:
    """asyncpg sits behind a transaction pooler; other drivers keep their default pool."""
    options: dict[str, Any] = {"echo": not settings.is_production}
    if "+asyncpg" in database_url:
        options["poolclass"] = NullPool
        # prepared statements do not survive pgbouncer transaction mode
        options["connect_args"] = {"statement_cache_size": 0}
    else:
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def _session_scope() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back session after error")
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    async with _session_scope() as session:
        yield session


def get_db_context():
    """Session for code outside a request (startup defaults, scripts)."""
    return _session_scope()
