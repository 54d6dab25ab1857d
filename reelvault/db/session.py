# reelvault/db/session.py
from __future__ import annotations

"""
ReelVault — Database Engine & Session Dependencies

- `build_engine(cfg)` / `build_session_maker(engine)` create the engine and
  session factory for one app; `create_app()` keeps both on `app.state`
  (SQLite via aiosqlite by default, PostgreSQL via asyncpg when
  `DATABASE_URL` points there).
- `get_async_db` reads the session factory of the app serving the request.
- `init_models()` creates missing tables at startup; Alembic owns real
  schema changes.
"""

from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from reelvault.core.config import Settings
from reelvault.db import base

# Pool knobs (ignored for SQLite)
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800
_POOL_TIMEOUT = 30
_POOL_SIZE = 5
_MAX_OVERFLOW = 10


def build_engine(cfg: Settings) -> AsyncEngine:
    """Create an async engine for `cfg.DATABASE_URL`."""
    kwargs: Dict[str, Any] = {"echo": cfg.DATABASE_ECHO, "future": True}
    if not cfg.is_sqlite:
        kwargs.update(
            pool_pre_ping=_POOL_PRE_PING,
            pool_recycle=_POOL_RECYCLE,
            pool_size=_POOL_SIZE,
            max_overflow=_MAX_OVERFLOW,
            pool_timeout=_POOL_TIMEOUT,
        )
    engine = create_async_engine(cfg.DATABASE_URL, **kwargs)

    if cfg.is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):  # pragma: no cover (driver hook)
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA journal_mode=WAL")
            cur.close()

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async SQLAlchemy session."""
    async with request.app.state.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_models(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet (the service bootstraps its own schema)."""
    async with engine.begin() as conn:
        await conn.run_sync(base.Base.metadata.create_all)
    logger.info("Database schema ready")


async def db_healthcheck(engine: AsyncEngine) -> bool:
    """Quick SELECT 1 to verify DB connectivity (used by /readyz)."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB healthcheck failed")
        return False


__all__ = [
    "build_engine",
    "build_session_maker",
    "get_async_db",
    "init_models",
    "db_healthcheck",
]
