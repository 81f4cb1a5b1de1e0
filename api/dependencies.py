"""Database engine and session factories shared by services, tasks and scripts"""

import os
import sys
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from config.settings import get_settings

settings = get_settings()


def _is_celery_worker() -> bool:
    """Check if running in Celery worker context."""
    if os.getenv("CELERY_WORKER") == "true":
        return True

    if len(sys.argv) > 0:
        argv_str = " ".join(sys.argv)
        if "celery" in argv_str and "worker" in argv_str:
            return True

    return False


def get_async_engine():
    """Get async engine for SQLAlchemy.

    Uses NullPool in Celery workers to avoid event loop issues with asyncpg.
    Each task runs its own ``asyncio.run()`` loop, so connection pools can't
    be shared between tasks.

    Note: NO @lru_cache for Celery workers - engine must be created fresh
    for each asyncio.run() call.
    """
    if _is_celery_worker():
        return create_async_engine(settings.database.url, echo=False, poolclass=NullPool)
    return _get_cached_engine()


@lru_cache
def _get_cached_engine():
    """Cached engine for long-running processes."""
    return create_async_engine(
        settings.database.url,
        echo=False,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
        pool_timeout=settings.database.pool_timeout,
    )


def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get session maker for async sessions."""
    engine = get_async_engine()
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
