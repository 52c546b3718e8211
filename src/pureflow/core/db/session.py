from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.pureflow.core.db.engine import get_engine


@asynccontextmanager
async def get_session(engine: AsyncEngine | None = None) -> AsyncGenerator[AsyncSession]:
    """Open a session on ``engine`` (the process engine by default).

    Objects are not expired on commit: the credential store hands users back
    to callers after its own commit.
    """
    factory = async_sessionmaker(engine or get_engine(), expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session
