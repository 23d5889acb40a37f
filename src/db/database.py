"""Async database engine and session management.

Engines and session factories are cached per database URL so that the slot
store, the metadata store and tests pointing at temporary files can coexist
in one process.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base


DEFAULT_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///./data/slots.db"

_engines: dict[str, AsyncEngine] = {}
_session_factories: dict[str, async_sessionmaker[AsyncSession]] = {}


def get_async_engine(database_url: str = DEFAULT_ASYNC_DATABASE_URL) -> AsyncEngine:
    """Get or create the asynchronous engine for ``database_url``."""
    engine = _engines.get(database_url)
    if engine is None:
        engine = create_async_engine(database_url, echo=False)
        _engines[database_url] = engine
    return engine


def get_async_session_factory(
    database_url: str = DEFAULT_ASYNC_DATABASE_URL,
) -> async_sessionmaker[AsyncSession]:
    """Get the async session factory bound to ``database_url``."""
    factory = _session_factories.get(database_url)
    if factory is None:
        factory = async_sessionmaker(
            bind=get_async_engine(database_url),
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
        _session_factories[database_url] = factory
    return factory


@asynccontextmanager
async def get_session(
    database_url: str = DEFAULT_ASYNC_DATABASE_URL,
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits on success and rolls back on error."""
    session = get_async_session_factory(database_url)()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db_async(database_url: str = DEFAULT_ASYNC_DATABASE_URL) -> None:
    """Create all tables that do not exist yet."""
    engine = get_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db_async(database_url: str | None = None) -> None:
    """Dispose one engine, or all of them when no URL is given."""
    urls = [database_url] if database_url else list(_engines)
    for url in urls:
        engine = _engines.pop(url, None)
        _session_factories.pop(url, None)
        if engine is not None:
            await engine.dispose()
