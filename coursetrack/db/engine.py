"""Async SQLAlchemy engine and session factory.

With DATABASE_URL set, every unit of work opened by repos.stores.open_stores()
is one session on this engine.  Without it, ``engine`` and
``async_session_factory`` are None and the app runs on in-memory repos.

Isolation is pinned to READ COMMITTED: progress reconciliation locks the
enrollment row (SELECT ... FOR UPDATE) and relies on each later statement
seeing rows committed by the transaction that held the lock before it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from coursetrack.core.config import SETTINGS

logger = logging.getLogger(__name__)

ISOLATION_LEVEL = "READ COMMITTED"


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def build_engine(
    url: str, *, pool_size: int, max_overflow: int, echo: bool = False
) -> AsyncEngine:
    return create_async_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,  # the worker can sit idle past server-side timeouts
        isolation_level=ISOLATION_LEVEL,
    )


if SETTINGS.database_url:
    engine: AsyncEngine | None = build_engine(
        SETTINGS.database_url,
        pool_size=SETTINGS.db_pool_size,
        max_overflow=SETTINGS.db_max_overflow,
        echo=SETTINGS.is_dev,
    )
    async_session_factory: async_sessionmaker[AsyncSession] | None = (
        async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    )
else:
    engine = None
    async_session_factory = None


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine."""
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    logger.info(
        "Database engine ready: %s (pool_size=%d, max_overflow=%d, %s)",
        engine.url,
        SETTINGS.db_pool_size,
        SETTINGS.db_max_overflow,
        ISOLATION_LEVEL,
    )
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
