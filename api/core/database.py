"""Async engine, request-scoped sessions, and pool health for the catalog database.

Routes never commit. ``get_db`` opens one session per request, commits when
the handler returns, and rolls back when it raises. Repositories only flush.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, NamedTuple, TypedDict

from fastapi import Depends, Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import QueuePool

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)

# Connections opened on top of the one init_db already holds
MAX_WARM_CONNECTIONS = 3


class Base(DeclarativeBase):
    pass


class PoolStatus(NamedTuple):
    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class HealthCheckResult(TypedDict):
    database: bool
    pool: PoolStatus | None


def _watch_pool_overflow(engine: AsyncEngine) -> None:
    pool = engine.sync_engine.pool
    if not isinstance(pool, QueuePool):
        return

    @event.listens_for(pool, "checkout")
    def _on_checkout(dbapi_conn, connection_record, connection_proxy):
        overflow = pool.overflow()
        if overflow > 0:
            logger.warning(
                "db.pool.overflow",
                db_pool_size=pool.size(),
                db_pool_checked_out=pool.checkedout(),
                db_pool_overflow_count=overflow,
            )


def create_engine() -> AsyncEngine:
    """Engine for DATABASE_URL with pool sizing and statement timeout from settings."""
    settings = get_settings()

    engine = create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        connect_args={
            "server_settings": {
                "statement_timeout": str(settings.db_statement_timeout_ms),
            },
        },
    )
    _watch_pool_overflow(engine)
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: responses are built from objects after commit
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back and re-raise on error."""
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            try:
                await session.rollback()
            except Exception as rollback_err:
                logger.warning("db.rollback.failed", error=str(rollback_err))
            raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency: a session bound to the app's engine for one request."""
    async with session_scope(request.app.state.session_maker) as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def _ping(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        await conn.rollback()


async def init_db(engine: AsyncEngine) -> None:
    """Fail fast at startup if the database is unreachable.

    The schema itself is owned by Alembic.
    """
    async with asyncio.timeout(30):
        await _ping(engine)
    logger.info("db.connectivity.verified")


async def warm_pool(engine: AsyncEngine) -> None:
    """Open a few connections in the background so the first requests don't wait."""
    warm_count = min(get_settings().db_pool_size - 1, MAX_WARM_CONNECTIONS)
    if warm_count <= 0:
        return

    try:
        async with asyncio.timeout(30):
            await asyncio.gather(
                *(_ping(engine) for _ in range(warm_count)),
                return_exceptions=True,
            )
    except TimeoutError:
        logger.warning("db.pool.warming.timeout", connections=warm_count)
        return
    logger.info("db.pool.warmed", connections=warm_count)


async def dispose_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("db.engine.disposed")


async def check_db_connection(engine: AsyncEngine) -> None:
    """Raise if ``SELECT 1`` does not succeed within 30 seconds."""
    async with asyncio.timeout(30):
        await _ping(engine)


def get_pool_status(engine: AsyncEngine) -> PoolStatus | None:
    """Pool counters, or None for pools that don't track them (e.g. NullPool)."""
    pool = engine.sync_engine.pool
    if not isinstance(pool, QueuePool):
        return None
    return PoolStatus(
        pool_size=pool.size(),
        checked_out=pool.checkedout(),
        overflow=pool.overflow(),
        checked_in=pool.checkedin(),
    )


async def comprehensive_health_check(engine: AsyncEngine) -> HealthCheckResult:
    """Database reachability plus pool counters, for /health/detailed."""
    try:
        await check_db_connection(engine)
        reachable = True
    except Exception:
        logger.warning("db.health_check.failed", exc_info=True)
        reachable = False

    return {"database": reachable, "pool": get_pool_status(engine)}
