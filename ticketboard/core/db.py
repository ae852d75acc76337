from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_settings
from ticketboard.models import Base

logger = logging.getLogger(__name__)

_ENGINE_LOCK = asyncio.Lock()
_ENGINE: AsyncEngine | None = None
_SESSION_FACTORY: async_sessionmaker[AsyncSession] | None = None


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Build the async engine for ``database_url`` or the configured database."""

    url = make_url(database_url or get_settings().resolved_database_url)
    options: dict = {"echo": False}
    if url.get_backend_name() != "sqlite":
        # MySQL closes idle connections; check them out fresh.
        options["pool_pre_ping"] = True
        options["pool_recycle"] = 3600
    logger.info("Connecting ticket store at %s", url.render_as_string(hide_password=True))
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create any missing ticket tables. Existing tables are left untouched."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_engine() -> AsyncEngine:
    global _ENGINE, _SESSION_FACTORY

    if _ENGINE is None:
        async with _ENGINE_LOCK:
            if _ENGINE is None:
                engine = create_engine()
                await init_db(engine)
                _ENGINE = engine
                _SESSION_FACTORY = create_session_factory(engine)
    assert _ENGINE is not None
    return _ENGINE


async def dispose_engine() -> None:
    global _ENGINE, _SESSION_FACTORY
    if _ENGINE is None:
        return
    await _ENGINE.dispose()
    _ENGINE = None
    _SESSION_FACTORY = None


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""

    await get_engine()
    assert _SESSION_FACTORY is not None
    async with _SESSION_FACTORY() as session:
        yield session
