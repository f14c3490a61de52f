import asyncio
import contextlib
import logging
import uuid
from datetime import datetime
from typing import AsyncIterator, Callable, Iterable, List, Optional

from segment_service.db.exceptions import SegmentDBTransactionError
from segment_service.segments.engine import MembershipMutationEngine, UnitOfWorkFactory
from segment_service.segments.models import MutationResult, utc_now
from segment_service.segments.report import ReportProjector
from segment_service.segments.validation import parse_period, validate_slug, validate_slugs

logger = logging.getLogger(__name__)


class SegmentService:
    """Use cases exposed by the segment service.

    Inputs are validated before any storage access. Each operation runs in its own
    unit of work, bounded by ``timeout_seconds`` (None disables the bound).
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        projector: Optional[ReportProjector] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._projector = projector or ReportProjector()
        self._timeout_seconds = timeout_seconds
        self.engine = MembershipMutationEngine(uow_factory, clock=clock)

    async def create_segment(self, slug: str) -> int:
        slug = validate_slug(slug)
        async with self._deadline("create segment"):
            async with self._uow_factory() as uow:
                key = await uow.catalog.create(slug)
                await uow.commit()
        logger.info(f"Created segment '{slug}' with key {key}")
        return key

    async def delete_segment(self, slug: str) -> None:
        """Delete a segment and, structurally, all of its memberships (no audit entries)."""
        slug = validate_slug(slug)
        async with self._deadline("delete segment"):
            async with self._uow_factory() as uow:
                await uow.catalog.delete(slug)
                await uow.commit()
        logger.info(f"Deleted segment '{slug}' and its memberships")

    async def update_user_segments(
        self,
        user_id: uuid.UUID,
        to_add: Iterable[str],
        to_remove: Iterable[str],
    ) -> MutationResult:
        add_slugs = validate_slugs(to_add)
        remove_slugs = validate_slugs(to_remove)
        async with self._deadline("update user segments"):
            return await self.engine.apply(user_id, add_slugs, remove_slugs)

    async def get_user_segments(self, user_id: uuid.UUID) -> List[str]:
        async with self._deadline("get user segments"):
            async with self._uow_factory() as uow:
                segments = await uow.memberships.list_segments(user_id)
        return sorted(segments)

    def report(self, period: str, user_id: Optional[uuid.UUID] = None) -> AsyncIterator[str]:
        """Validate ``period`` and return a lazy CSV stream of the audit log for that month.

        Raises:
            InvalidPeriodFormatError: Immediately, if ``period`` is not ``yyyy-mm``.
        """
        start, end = self._projector.period_bounds(*parse_period(period))
        return self._stream_report(start, end, user_id)

    async def _stream_report(
        self, start: datetime, end: datetime, user_id: Optional[uuid.UUID]
    ) -> AsyncIterator[str]:
        logger.debug(f"Streaming report for [{start}, {end}) user={user_id}")
        async with self._uow_factory() as uow:
            async for chunk in self._projector.render_csv(uow.audit_log.query(start, end, user_id)):
                yield chunk

    @contextlib.asynccontextmanager
    async def _deadline(self, operation: str):
        try:
            async with asyncio.timeout(self._timeout_seconds):
                yield
        except TimeoutError as e:
            logger.error(f"Timed out after {self._timeout_seconds}s during '{operation}'")
            raise SegmentDBTransactionError(
                f"Operation '{operation}' timed out after {self._timeout_seconds}s and was rolled back"
            ) from e
