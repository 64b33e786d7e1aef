"""Test fixtures and configuration."""

import logging
import os
import sys

# Must be set before reconciler.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
import structlog  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from reconciler import database  # noqa: E402
from reconciler.database import Base  # noqa: E402
from reconciler.main import app  # noqa: E402
from reconciler.models import User  # noqa: E402
from tests.factories import UserFactory  # noqa: E402
from reconciler.security import create_access_token  # noqa: E402


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Console rendering to stdout; loggers are not cached so capture_logs always applies."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=False),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Per-test SQLite database file with the full schema.

    pysqlite's own transaction handling breaks SAVEPOINT, so autocommit is
    switched off at the driver and BEGIN is emitted by SQLAlchemy instead.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'reconciler.db'}",
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine):
    """Route get_db (and therefore every API handler) to the test database."""
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    previous = database.set_test_session_maker(maker)
    yield maker
    database.set_test_session_maker(previous)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def test_user(db) -> User:
    return await UserFactory.create_async(db, name="Test Owner")


@pytest.fixture
def auth_headers(test_user) -> dict[str, str]:
    token = create_access_token({"sub": str(test_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client(session_maker, auth_headers):
    """Authenticated client for the current test user."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=auth_headers) as ac:
        yield ac


@pytest_asyncio.fixture
async def public_client(session_maker):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
