"""Async engine and session management for the SQLite store."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from agora import config as config_module

log = structlog.get_logger()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _set_sqlite_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
    """Enable FK enforcement (for cascades) and WAL on every new connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(database_url: str) -> AsyncEngine:
    engine = create_async_engine(
        database_url,
        echo=False,
        connect_args={"timeout": 30},
    )
    event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
    return engine


async def init_db(database_url: str | None = None) -> AsyncEngine:
    """Create the engine and the schema if it does not exist yet.

    Safe to call again; a previous engine is disposed first.
    """
    global _engine, _session_factory

    # Register tables on SQLModel.metadata
    from agora.db import models  # noqa: F401

    if _engine is not None:
        await close_db()

    url = database_url or config_module.settings.database_url
    _engine = _create_engine(url)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    log.info("database_initialized", url=url)
    return _engine


async def close_db() -> None:
    """Dispose the engine and drop the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def _require_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized; call init_db() first")
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session outside of a request (CLI, background tasks)."""
    async with _require_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_session_dependency() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with _require_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def check_db_health() -> bool:
    """Return True when the store answers a trivial query."""
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        log.warning("database_health_check_failed", error=str(e))
        return False
