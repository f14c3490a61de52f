import os
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Awaitable, Callable, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel

from segment_service.core.dependency_container import DependencyContainer
from segment_service.db.database_async import create_session_factory
from segment_service.db.unit_of_work import SqlUnitOfWork
from segment_service.segments.engine import UnitOfWorkFactory
from segment_service.segments.models import AuditEntry
from segment_service.settings import Settings
from segment_service.testing.in_memory import InMemoryStore

# --- Environment isolation ---


@pytest.fixture(autouse=True)
def override_settings_dependency(request):
    """AUTOUSE: Loads .env.test (or .env for integration tests) and restores the environment afterwards."""
    project_root = Path(__file__).parent.parent
    original_environ = os.environ.copy()

    if request.node.get_closest_marker("integration"):
        env_file_path = project_root / ".env"
        if not env_file_path.exists():
            pytest.fail(f"Required environment file not found for integration test: {env_file_path}")
    else:
        env_file_path = project_root / ".env.test"

    if env_file_path.exists():
        load_dotenv(dotenv_path=env_file_path, override=True)

    yield

    os.environ.clear()
    os.environ.update(original_environ)


# --- Mocks ---


@pytest.fixture
def mock_settings() -> MagicMock:
    """Provides a mock Settings instance."""
    settings = MagicMock(spec=Settings)
    settings.get_report_tz_offset_hours.return_value = 3
    settings.get_request_timeout_seconds.return_value = 10.0
    return settings


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Provides a mock SQLAlchemy AsyncSession instance."""
    session = AsyncMock(spec=AsyncSession)
    return session


@pytest.fixture
def mock_db_session_factory(mock_db_session: AsyncMock) -> MagicMock:
    """Provides a mock database session factory context manager."""
    mock_factory = MagicMock()

    mock_async_context_manager = AsyncMock()
    mock_async_context_manager.__aenter__.return_value = mock_db_session
    mock_async_context_manager.__aexit__.return_value = None

    mock_factory.return_value = mock_async_context_manager
    return mock_factory


@pytest.fixture
def mock_container(mock_settings: MagicMock, mock_db_session_factory: MagicMock) -> MagicMock:
    """Provides a mock DependencyContainer instance."""
    container = MagicMock(spec=DependencyContainer)
    container.settings = mock_settings
    container.db_session_factory = mock_db_session_factory
    container.db_engine = None
    return container


# --- Storage backends ---


@pytest.fixture
def in_memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def uow_factory(request) -> UnitOfWorkFactory:
    """Unit of work factory, run once against the in-memory fake and once against SQLite."""
    if request.param == "memory":
        yield InMemoryStore()
        return

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    session_factory = create_session_factory(engine)

    yield lambda: SqlUnitOfWork(session_factory)

    await engine.dispose()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.UUID("0f8fad5b-d9cb-469f-a165-70867728950e")


@pytest.fixture
def read_segments(uow_factory) -> Callable[[uuid.UUID], Awaitable[set]]:
    """Reads a user's current segments in a fresh unit of work."""

    async def _read(user: uuid.UUID) -> set:
        async with uow_factory() as uow:
            return await uow.memberships.list_segments(user)

    return _read


@pytest.fixture
def read_audit(uow_factory) -> Callable[..., Awaitable[List[AuditEntry]]]:
    """Reads every audit entry (optionally for one user) in a fresh unit of work."""

    async def _read(user: Optional[uuid.UUID] = None) -> List[AuditEntry]:
        async with uow_factory() as uow:
            return [entry async for entry in uow.audit_log.query(datetime.min, datetime.max, user)]

    return _read


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """A clock that advances one second per call, starting 2023-09-15 12:00:00 UTC."""
    start = datetime(2023, 9, 15, 12, 0, 0)
    ticks = iter(range(10_000))
    return lambda: start + timedelta(seconds=next(ticks))
