"""Brickvest - Async database engine and sessions.

Every unit of work (an HTTP request or a task run) gets one session that
commits when the work returns and rolls back when it raises. Services
commit earlier themselves where a money action must be durable before a
processor call.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from brickvest.core.config import get_settings


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": get_settings().debug}
    if not url.startswith("sqlite"):
        # MySQL drops idle connections; pre-ping replaces them
        options.update(pool_pre_ping=True, pool_recycle=3600, pool_size=10, max_overflow=20)
    return options


engine = create_async_engine(
    get_settings().database_url,
    **_engine_options(get_settings().database_url),
)

async_session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create missing tables. Schema changes go through Alembic."""
    import brickvest.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for code outside a request (Celery tasks, scripts).

    Usage:
        async with get_session() as db:
            await WithdrawalService(db, gateway).reconcile_stuck_withdrawals(300)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with get_session() as session:
        yield session
