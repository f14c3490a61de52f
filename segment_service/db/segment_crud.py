# Catalog operations on the segments table.

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from segment_service.db.exceptions import SegmentDBOperationError, SegmentDBQueryError
from segment_service.segments.exceptions import SegmentAlreadyExistsError, SegmentNotFoundError
from segment_service.segments.interfaces import Catalog

from .sqlmodel_models import Segment, SegmentUser

logger = logging.getLogger(__name__)


class SqlCatalog(Catalog):
    """Catalog backed by the ``segments`` table.

    Never commits: the enclosing unit of work owns the transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def resolve(self, slug: str) -> Optional[int]:
        """Get the id of the segment with the given slug.

        Args:
            slug: The segment slug, matched exactly

        Returns:
            The segment id, or None if no such segment exists

        Raises:
            SegmentDBQueryError: If the query execution fails
            SegmentDBOperationError: For unexpected errors during lookup
        """
        try:
            stmt = select(Segment.id).where(Segment.name == slug)  # type: ignore[arg-type]
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error resolving segment '{slug}': {sqla_err}", exc_info=True)
            raise SegmentDBQueryError(f"Database query failed while resolving segment '{slug}': {sqla_err}") from sqla_err
        except Exception as e:
            logger.error(f"Unexpected error resolving segment '{slug}': {e}", exc_info=True)
            raise SegmentDBOperationError(f"Unexpected error during segment lookup: {e}") from e

    async def create(self, slug: str) -> int:
        """Create a new segment.

        Raises:
            SegmentAlreadyExistsError: If a segment with this slug exists, including one
                committed by a concurrent request after the existence check
            SegmentDBOperationError: For other database errors
        """
        if await self.resolve(slug) is not None:
            raise SegmentAlreadyExistsError(slug)

        try:
            segment = Segment(name=slug)
            self._session.add(segment)
            await self._session.flush()
            logger.debug(f"Inserted segment '{slug}' with id {segment.id}")
            return segment.id  # type: ignore[return-value]
        except IntegrityError as ie:
            logger.warning(f"Unique constraint hit creating segment '{slug}': {ie}")
            raise SegmentAlreadyExistsError(slug) from ie
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error creating segment '{slug}': {sqla_err}")
            raise SegmentDBOperationError(f"Database operation failed while creating segment: {sqla_err}") from sqla_err

    async def delete(self, slug: str) -> None:
        """Delete a segment and every membership referencing it.

        Raises:
            SegmentNotFoundError: If no segment has this slug
            SegmentDBOperationError: For database errors
        """
        segment_id = await self.resolve(slug)
        if segment_id is None:
            raise SegmentNotFoundError(slug)

        try:
            memberships = await self._session.execute(
                delete(SegmentUser).where(SegmentUser.segments_id == segment_id)  # type: ignore[arg-type]
            )
            await self._session.execute(delete(Segment).where(Segment.id == segment_id))  # type: ignore[arg-type]
            logger.debug(f"Deleted segment '{slug}' (id {segment_id}) and {memberships.rowcount} memberships")
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error deleting segment '{slug}': {sqla_err}")
            raise SegmentDBOperationError(f"Database operation failed while deleting segment: {sqla_err}") from sqla_err
