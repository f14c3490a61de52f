# Audit log operations on the report table.

import logging
import uuid
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from segment_service.db.exceptions import SegmentDBOperationError, SegmentDBQueryError
from segment_service.segments.interfaces import AuditLog
from segment_service.segments.models import AuditAction, AuditEntry

from .sqlmodel_models import ReportEntry

logger = logging.getLogger(__name__)


class SqlAuditLog(AuditLog):
    """Audit log backed by the ``report`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, entry: AuditEntry) -> None:
        """Write an audit entry.

        The row is flushed immediately so a failure aborts the enclosing unit of work
        at the point of the change rather than at commit.

        Raises:
            SegmentDBOperationError: If the write fails
        """
        try:
            self._session.add(
                ReportEntry(
                    user_id=entry.user_id,
                    segment_slug=entry.segment_slug,
                    action=entry.action.value,
                    created_at=entry.timestamp,
                )
            )
            await self._session.flush()
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error appending audit entry {entry}: {sqla_err}")
            raise SegmentDBOperationError(f"Database operation failed while writing audit entry: {sqla_err}") from sqla_err

    async def query(
        self,
        period_start: datetime,
        period_end: datetime,
        user_id: Optional[uuid.UUID] = None,
    ) -> AsyncIterator[AuditEntry]:
        """Stream audit entries in ``[period_start, period_end)``, oldest first.

        Args:
            period_start: Inclusive lower bound (naive UTC)
            period_end: Exclusive upper bound (naive UTC)
            user_id: Optional filter by user

        Raises:
            SegmentDBQueryError: If the query execution fails
        """
        stmt = (
            select(ReportEntry)
            .where(
                ReportEntry.created_at >= period_start,  # type: ignore[arg-type]
                ReportEntry.created_at < period_end,  # type: ignore[arg-type]
            )
            .order_by(ReportEntry.created_at, ReportEntry.id)  # type: ignore[arg-type]
        )
        if user_id is not None:
            stmt = stmt.where(ReportEntry.user_id == user_id)  # type: ignore[arg-type]

        try:
            rows = await self._session.stream_scalars(stmt)
            async for row in rows:
                yield AuditEntry(
                    user_id=row.user_id,
                    segment_slug=row.segment_slug,
                    action=AuditAction(row.action),
                    timestamp=row.created_at,
                )
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error querying audit log: {sqla_err}")
            raise SegmentDBQueryError(f"Database query failed while reading the audit log: {sqla_err}") from sqla_err
