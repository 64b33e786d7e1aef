"""Async engine, sessions, and the request-scoped ``get_db`` dependency."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from reconciler.config import settings


class Base(DeclarativeBase):
    pass


def _engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # SQLite pools reject sizing arguments
        return options
    options.update(
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # seconds
    )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Tests point every request at their own database through this hook
_test_session_maker: async_sessionmaker[AsyncSession] | None = None


def set_test_session_maker(
    maker: async_sessionmaker[AsyncSession] | None,
) -> async_sessionmaker[AsyncSession] | None:
    """Install ``maker`` for all new sessions; returns the one it replaces."""
    global _test_session_maker
    previous, _test_session_maker = _test_session_maker, maker
    return previous


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    maker = _test_session_maker or async_session_maker
    async with maker() as session:
        yield session


async def init_db() -> None:
    """Startup hook.

    Tables are owned by alembic (``alembic upgrade head`` runs before the app
    starts), so nothing is created here.
    """
    from reconciler.logger import get_logger

    get_logger(__name__).info("Database initialized (schema managed externally)", pool=engine.pool.status())
