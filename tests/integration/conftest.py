"""Integration test fixtures for database and HTTP client operations.

These fixtures require a PostgreSQL database at DATABASE_URL.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.pureflow.core import db
from src.pureflow.core import redis as redis_core
from src.pureflow.core.config import get_settings
from src.pureflow.core.db import run_migrations_sync
from src.pureflow.main import create_app
from src.pureflow.models import User
from tests.factories import DEFAULT_TEST_PASSWORD, UserFactory


@pytest.fixture(autouse=True)
async def _reset_redis_between_tests() -> AsyncGenerator[None]:
    """Redis clients are bound to the event loop of the test that created them."""
    redis_core.reset_redis_state()
    yield
    await redis_core.close_redis()


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)

    await asyncio.to_thread(run_migrations_sync)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session for arranging data. Tests must commit explicitly."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def test_user(engine: AsyncEngine, db_session: AsyncSession) -> AsyncGenerator[User]:
    """A committed MARKETING user, deleted (with its tokens) afterwards."""
    user = UserFactory.build()
    db_session.add(user)
    await db_session.commit()

    yield user

    async with engine.connect() as conn:
        await conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": user.id})
        await conn.commit()


@pytest.fixture
def credentials(test_user: User) -> dict[str, str]:
    return {"email": test_user.email, "password": DEFAULT_TEST_PASSWORD}


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client against the real app and database."""
    await db.dispose_engine()

    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    await db.dispose_engine()
