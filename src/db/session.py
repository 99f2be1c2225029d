"""
Async engine and sessions for the commission ledger.

One session per unit of work (a request, a scheduler run) that commits once
on success. Deal closure and notification dispatch commit explicitly inside
that session where they need an earlier durable point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.config import settings


def _connect_args(database_url: str) -> dict:
    # asyncpg's statement cache breaks behind a transaction pooler
    if database_url.startswith("postgresql+asyncpg"):
        return {"statement_cache_size": 0}
    return {}


engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=not settings.is_production,
    connect_args=_connect_args(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session for scheduler jobs and scripts: commit on success, roll back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency; same lifecycle as get_db_context."""
    async with get_db_context() as session:
        yield session
