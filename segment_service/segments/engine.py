"""Membership mutation engine.

Applies a batch of segment additions and removals for one user inside a single
unit of work. Every slug in both lists is resolved before anything is mutated,
so an unknown slug anywhere rejects the whole request. Removals are applied
before additions, so a slug named in both lists ends up "added". Only effective
changes are written to the audit log.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List

from segment_service.segments.exceptions import SegmentNotFoundError
from segment_service.segments.interfaces import Catalog, UnitOfWork
from segment_service.segments.models import AuditAction, AuditEntry, MutationResult, utc_now

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], UnitOfWork]


class MembershipMutationEngine:
    """Atomically applies membership deltas and keeps the audit log consistent with them."""

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Callable[[], datetime] = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def apply(
        self,
        user_id: uuid.UUID,
        to_add: Iterable[str],
        to_remove: Iterable[str],
    ) -> MutationResult:
        """Add ``user_id`` to ``to_add`` and remove it from ``to_remove``.

        Args:
            user_id: The user whose memberships change.
            to_add: Slugs of segments to join. Duplicates are harmless.
            to_remove: Slugs of segments to leave. Duplicates are harmless.

        Returns:
            The effective changes, in the order they were applied.

        Raises:
            SegmentNotFoundError: If any slug in either list is not in the catalog. Nothing is applied.
            SegmentDBOperationError: If storage fails. Nothing is applied; the request may be retried.
        """
        add_slugs = list(dict.fromkeys(to_add))
        remove_slugs = list(dict.fromkeys(to_remove))
        result = MutationResult(user_id=user_id)

        async with self._uow_factory() as uow:
            logger.debug(f"Resolving {len(remove_slugs)} removal and {len(add_slugs)} addition slugs for {user_id}")
            remove_keys = await self._resolve_all(uow.catalog, remove_slugs)
            add_keys = await self._resolve_all(uow.catalog, add_slugs)

            logger.debug(f"Applying removals for {user_id}")
            for slug, key in remove_keys.items():
                if not await uow.memberships.exists(user_id, key):
                    continue
                await uow.memberships.remove(user_id, key)
                await uow.audit_log.append(
                    AuditEntry(user_id=user_id, segment_slug=slug, action=AuditAction.REMOVE, timestamp=self._clock())
                )
                result.removed.append(slug)

            logger.debug(f"Applying additions for {user_id}")
            for slug, key in add_keys.items():
                if await uow.memberships.exists(user_id, key):
                    continue
                await uow.memberships.add(user_id, key)
                await uow.audit_log.append(
                    AuditEntry(user_id=user_id, segment_slug=slug, action=AuditAction.ADD, timestamp=self._clock())
                )
                result.added.append(slug)

            await uow.commit()

        if result.changed:
            logger.info(f"Updated segments for user {user_id}: added={result.added} removed={result.removed}")
        else:
            logger.info(f"No effective segment changes for user {user_id}")
        return result

    @staticmethod
    async def _resolve_all(catalog: Catalog, slugs: List[str]) -> Dict[str, int]:
        resolved: Dict[str, int] = {}
        for slug in slugs:
            key = await catalog.resolve(slug)
            if key is None:
                logger.warning(f"Segment '{slug}' not found; rejecting the whole request")
                raise SegmentNotFoundError(slug)
            resolved[slug] = key
        return resolved
