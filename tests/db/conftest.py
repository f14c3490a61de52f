from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel

from segment_service.db.database_async import create_session_factory
from segment_service.db.unit_of_work import SessionFactory, SqlUnitOfWork


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """In-memory SQLite async engine with the segment tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> SessionFactory:
    return create_session_factory(async_engine)


@pytest_asyncio.fixture(scope="function")
async def async_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session on the in-memory database; the test owns commits."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_uow(session_factory):
    return lambda: SqlUnitOfWork(session_factory)
