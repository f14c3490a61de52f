# Capability interfaces for the segment catalog, membership store and audit log.

import abc
import logging
import uuid
from datetime import datetime
from typing import AsyncIterator, Optional, Set

from segment_service.segments.models import AuditEntry

logger = logging.getLogger(__name__)


class Catalog(abc.ABC):
    """Owns the set of valid segments and maps slugs to internal keys."""

    @abc.abstractmethod
    async def resolve(self, slug: str) -> Optional[int]:
        """Return the internal key for ``slug`` (exact, case-sensitive), or None if absent."""
        ...

    @abc.abstractmethod
    async def create(self, slug: str) -> int:
        """Create a segment.

        Raises:
            SegmentAlreadyExistsError: If ``slug`` already resolves.
        """
        ...

    @abc.abstractmethod
    async def delete(self, slug: str) -> None:
        """Delete a segment together with every membership referencing it.

        The cascade is structural: no audit entries are written for the removed memberships.

        Raises:
            SegmentNotFoundError: If ``slug`` does not resolve.
        """
        ...


class MembershipStore(abc.ABC):
    """Owns the user/segment relation."""

    @abc.abstractmethod
    async def exists(self, user_id: uuid.UUID, segment_key: int) -> bool: ...

    @abc.abstractmethod
    async def add(self, user_id: uuid.UUID, segment_key: int) -> None:
        """Insert the pair. Inserting an existing pair is a no-op."""
        ...

    @abc.abstractmethod
    async def remove(self, user_id: uuid.UUID, segment_key: int) -> None:
        """Delete the pair. Removing an absent pair is a no-op."""
        ...

    @abc.abstractmethod
    async def list_segments(self, user_id: uuid.UUID) -> Set[str]:
        """Return the slugs of every segment the user currently belongs to."""
        ...


class AuditLog(abc.ABC):
    """Append-only record of effective membership changes."""

    @abc.abstractmethod
    async def append(self, entry: AuditEntry) -> None: ...

    @abc.abstractmethod
    def query(
        self,
        period_start: datetime,
        period_end: datetime,
        user_id: Optional[uuid.UUID] = None,
    ) -> AsyncIterator[AuditEntry]:
        """Iterate entries with ``period_start <= timestamp < period_end``.

        Entries come ordered by timestamp, ties in insertion order. The iterator is
        lazy and single-pass; it must be consumed while the unit of work is open.
        """
        ...


class UnitOfWork(abc.ABC):
    """Atomic transaction boundary shared by a catalog, a membership store and an audit log.

    Use as an async context manager. Changes become visible only after ``commit()``;
    leaving the block without committing (including on error or cancellation) rolls back.
    """

    catalog: Catalog
    memberships: MembershipStore
    audit_log: AuditLog

    def __init__(self) -> None:
        self._committed = False

    async def __aenter__(self) -> "UnitOfWork":
        self._committed = False
        await self._begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None or not self._committed:
                if exc_type is not None:
                    logger.debug(f"Rolling back unit of work after {exc_type.__name__}")
                await self.rollback()
        finally:
            await self._close()

    async def commit(self) -> None:
        await self._commit()
        self._committed = True

    @abc.abstractmethod
    async def rollback(self) -> None: ...

    @abc.abstractmethod
    async def _begin(self) -> None: ...

    @abc.abstractmethod
    async def _commit(self) -> None: ...

    @abc.abstractmethod
    async def _close(self) -> None: ...
