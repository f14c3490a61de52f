# Dependency Injection Container.

from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from segment_service.db.unit_of_work import SqlUnitOfWork
from segment_service.segments.report import ReportProjector
from segment_service.segments.service import SegmentService
from segment_service.settings import Settings


class DependencyContainer:
    """Holds shared dependencies for the application.

    The engine (and its connection pool) is created once at startup and passed
    explicitly to everything that needs storage. Tests swap in mocks or in-memory
    implementations by building a container themselves.
    """

    def __init__(
        self,
        settings: Settings,
        db_session_factory: Callable[[], AsyncContextManager[AsyncSession]],
        db_engine: Optional[AsyncEngine] = None,
    ) -> None:
        """
        Initializes the container.

        Args:
            settings: Application settings.
            db_session_factory: A factory function that returns an async context manager
                                yielding an SQLAlchemy AsyncSession.
            db_engine: The engine backing ``db_session_factory``, disposed on shutdown.
        """
        self.settings = settings
        self.db_session_factory = db_session_factory
        self.db_engine = db_engine

    def create_unit_of_work(self) -> SqlUnitOfWork:
        """Create a unit of work on a fresh session from the container's factory."""
        return SqlUnitOfWork(self.db_session_factory)

    def create_segment_service(self) -> SegmentService:
        return SegmentService(
            uow_factory=self.create_unit_of_work,
            projector=ReportProjector(self.settings.get_report_tz_offset_hours()),
            timeout_seconds=self.settings.get_request_timeout_seconds(),
        )
