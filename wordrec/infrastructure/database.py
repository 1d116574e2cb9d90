from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from wordrec.core.config import settings

# Connection pool settings
POOL_PRE_PING = True

# Async SQLAlchemy engine
async_engine = create_async_engine(
    settings.async_database_url,
    pool_pre_ping=POOL_PRE_PING,
    pool_recycle=settings.db_pool_recycle,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    echo=settings.debug,
)

# Session factory. Repositories open one short-lived session per call so that
# concurrently running extractors never share a session.
AsyncSessionLocal = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory dependency"""
    return AsyncSessionLocal


@asynccontextmanager
async def worker_session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a private, unpooled engine.

    Celery tasks run each job in a fresh event loop, so they cannot share the
    pooled engine whose connections belong to another loop.
    """
    engine = create_async_engine(settings.async_database_url, poolclass=NullPool)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()

