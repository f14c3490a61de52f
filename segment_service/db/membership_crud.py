# Membership operations on the segments_users table.

import logging
import uuid
from typing import Set

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from segment_service.db.exceptions import (
    SegmentDBIntegrityError,
    SegmentDBOperationError,
    SegmentDBQueryError,
)
from segment_service.segments.interfaces import MembershipStore

from .sqlmodel_models import Segment, SegmentUser

logger = logging.getLogger(__name__)


class SqlMembershipStore(MembershipStore):
    """Membership store backed by the ``segments_users`` table.

    Never commits: the enclosing unit of work owns the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, user_id: uuid.UUID, segment_key: int) -> bool:
        try:
            stmt = (
                select(func.count())
                .select_from(SegmentUser)
                .where(
                    SegmentUser.segments_id == segment_key,  # type: ignore[arg-type]
                    SegmentUser.user_id == user_id,  # type: ignore[arg-type]
                )
            )
            result = await self._session.execute(stmt)
            return result.scalar_one() > 0
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error checking membership of {user_id} in {segment_key}: {sqla_err}")
            raise SegmentDBQueryError(f"Database query failed while checking membership: {sqla_err}") from sqla_err

    async def add(self, user_id: uuid.UUID, segment_key: int) -> None:
        """Insert the (segment, user) pair, ignoring an existing one.

        Raises:
            SegmentDBIntegrityError: If the segment does not exist
            SegmentDBOperationError: For other database errors
        """
        values = {"segments_id": segment_key, "user_id": user_id}
        try:
            dialect = self._session.get_bind().dialect.name
            if dialect == "postgresql":
                await self._session.execute(pg_insert(SegmentUser).values(**values).on_conflict_do_nothing())
            elif dialect == "sqlite":
                await self._session.execute(sqlite_insert(SegmentUser).values(**values).on_conflict_do_nothing())
            elif not await self.exists(user_id, segment_key):
                self._session.add(SegmentUser(**values))
                await self._session.flush()
        except IntegrityError as ie:
            logger.error(f"Integrity error adding {user_id} to segment {segment_key}: {ie}")
            raise SegmentDBIntegrityError(f"Could not add membership due to constraint violation: {ie}", ie) from ie
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error adding {user_id} to segment {segment_key}: {sqla_err}")
            raise SegmentDBOperationError(f"Database operation failed while adding membership: {sqla_err}") from sqla_err

    async def remove(self, user_id: uuid.UUID, segment_key: int) -> None:
        try:
            await self._session.execute(
                delete(SegmentUser).where(
                    SegmentUser.segments_id == segment_key,  # type: ignore[arg-type]
                    SegmentUser.user_id == user_id,  # type: ignore[arg-type]
                )
            )
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error removing {user_id} from segment {segment_key}: {sqla_err}")
            raise SegmentDBOperationError(f"Database operation failed while removing membership: {sqla_err}") from sqla_err

    async def list_segments(self, user_id: uuid.UUID) -> Set[str]:
        try:
            stmt = (
                select(Segment.name)
                .join(SegmentUser, Segment.id == SegmentUser.segments_id)  # type: ignore[arg-type]
                .where(SegmentUser.user_id == user_id)  # type: ignore[arg-type]
            )
            result = await self._session.execute(stmt)
            return set(result.scalars().all())
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error listing segments of {user_id}: {sqla_err}")
            raise SegmentDBQueryError(f"Database query failed while listing user segments: {sqla_err}") from sqla_err
