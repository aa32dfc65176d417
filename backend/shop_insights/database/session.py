"""
Database engine and session factory management.

The analytics core never reaches for a global session. Routes receive the
session factory through the get_session_factory dependency and hand it to
services explicitly, which lets independent reads open their own sessions
and run concurrently.

Usage:
    from shop_insights.database.session import get_session_factory

    @router.get("/items")
    async def get_items(session_factory=Depends(get_session_factory)):
        async with session_factory() as session:
            ...
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shop_insights.config.settings import Settings, get_settings
from shop_insights.platform.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

# Engines are keyed by URL so a changed DATABASE_URL gets a fresh pool
_engines: dict[str, AsyncEngine] = {}
_session_factories: dict[str, async_sessionmaker[AsyncSession]] = {}


def normalize_database_url(database_url: str) -> str:
    """
    Convert a database URL to its asyncio driver form.

    Handles Render/Railway style postgres:// URLs and plain sqlite URLs.
    """
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return database_url


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    url = normalize_database_url(database_url)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by every service."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_engine(database_url: Optional[str]) -> AsyncEngine:
    """Get or create the engine for a database URL."""
    if not database_url:
        raise ServiceUnavailableError("Database not configured")
    engine = _engines.get(database_url)
    if engine is None:
        engine = create_engine_for_url(database_url)
        _engines[database_url] = engine
        logger.info("Database engine created", extra={"dialect": engine.dialect.name})
    return engine


def get_session_factory(
    settings: Settings = Depends(get_settings),
) -> async_sessionmaker[AsyncSession]:
    """
    FastAPI dependency for the storage handle.

    Raises ServiceUnavailableError (503) if the database is not configured.
    """
    factory = _session_factories.get(settings.database_url or "")
    if factory is None:
        factory = build_session_factory(get_engine(settings.database_url))
        _session_factories[settings.database_url] = factory
    return factory


async def dispose_engines() -> None:
    """Close every pooled connection; called on application shutdown."""
    for engine in _engines.values():
        await engine.dispose()
    _engines.clear()
    _session_factories.clear()
