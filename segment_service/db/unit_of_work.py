import contextlib
import logging
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from segment_service.db.audit_crud import SqlAuditLog
from segment_service.db.exceptions import SegmentDBTransactionError
from segment_service.db.membership_crud import SqlMembershipStore
from segment_service.db.segment_crud import SqlCatalog
from segment_service.segments.interfaces import UnitOfWork

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]


class SqlUnitOfWork(UnitOfWork):
    """Unit of work over one database session and its transaction.

    A session is acquired from ``session_factory`` on entry and released on every
    exit path; the transaction is committed only by an explicit ``commit()``.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._stack: Optional[contextlib.AsyncExitStack] = None
        self._session: Optional[AsyncSession] = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work has not been entered")
        return self._session

    async def _begin(self) -> None:
        self._stack = contextlib.AsyncExitStack()
        self._session = await self._stack.enter_async_context(self._session_factory())
        self.catalog = SqlCatalog(self._session)
        self.memberships = SqlMembershipStore(self._session)
        self.audit_log = SqlAuditLog(self._session)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error committing unit of work: {sqla_err}")
            raise SegmentDBTransactionError(f"Database transaction failed to commit: {sqla_err}") from sqla_err

    async def rollback(self) -> None:
        if self._session is None:
            return
        try:
            await self._session.rollback()
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error rolling back unit of work: {sqla_err}")
            raise SegmentDBTransactionError(f"Database transaction failed to roll back: {sqla_err}") from sqla_err

    async def _close(self) -> None:
        stack, self._stack = self._stack, None
        self._session = None
        if stack is not None:
            await stack.aclose()
