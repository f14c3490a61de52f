import uuid
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from segment_service.db.audit_crud import SqlAuditLog
from segment_service.db.exceptions import SegmentDBOperationError, SegmentDBQueryError
from segment_service.db.sqlmodel_models import ReportEntry
from segment_service.segments.models import AuditAction, AuditEntry

pytestmark = pytest.mark.asyncio

SEPT = (datetime(2023, 9, 1), datetime(2023, 10, 1))


def _entry(user, slug, action=AuditAction.ADD, ts=datetime(2023, 9, 10, 8, 0, 0)) -> AuditEntry:
    return AuditEntry(user_id=user, segment_slug=slug, action=action, timestamp=ts)


async def _query(log: SqlAuditLog, start, end, user=None):
    return [entry async for entry in log.query(start, end, user)]


async def test_append_writes_row(async_session: AsyncSession, user_id):
    await SqlAuditLog(async_session).append(_entry(user_id, "A", AuditAction.REMOVE))

    row = (await async_session.execute(select(ReportEntry))).scalar_one()
    assert (row.user_id, row.segment_slug, row.action) == (user_id, "A", "remove")
    assert row.created_at == datetime(2023, 9, 10, 8, 0, 0)


async def test_query_orders_by_time_then_insertion(async_session: AsyncSession, user_id):
    log = SqlAuditLog(async_session)
    same = datetime(2023, 9, 10, 8, 0, 0)
    await log.append(_entry(user_id, "LATE", ts=datetime(2023, 9, 20)))
    await log.append(_entry(user_id, "TIE1", ts=same))
    await log.append(_entry(user_id, "TIE2", ts=same))
    await log.append(_entry(user_id, "EARLY", ts=datetime(2023, 9, 2)))

    slugs = [entry.segment_slug for entry in await _query(log, *SEPT)]

    assert slugs == ["EARLY", "TIE1", "TIE2", "LATE"]


async def test_query_period_is_half_open(async_session: AsyncSession, user_id):
    log = SqlAuditLog(async_session)
    await log.append(_entry(user_id, "AT_START", ts=SEPT[0]))
    await log.append(_entry(user_id, "AT_END", ts=SEPT[1]))
    await log.append(_entry(user_id, "BEFORE", ts=datetime(2023, 8, 31, 23, 59, 59)))

    slugs = [entry.segment_slug for entry in await _query(log, *SEPT)]

    assert slugs == ["AT_START"]


async def test_query_filters_by_user(async_session: AsyncSession, user_id):
    other = uuid.uuid4()
    log = SqlAuditLog(async_session)
    await log.append(_entry(user_id, "MINE"))
    await log.append(_entry(other, "THEIRS"))

    mine = await _query(log, *SEPT, user_id)
    everyone = await _query(log, *SEPT)

    assert [e.segment_slug for e in mine] == ["MINE"]
    assert {e.segment_slug for e in everyone} == {"MINE", "THEIRS"}


async def test_query_returns_domain_entries(async_session: AsyncSession, user_id):
    log = SqlAuditLog(async_session)
    original = _entry(user_id, "A", AuditAction.REMOVE)
    await log.append(original)

    (entry,) = await _query(log, *SEPT)

    assert entry == original


async def test_append_wraps_sqlalchemy_error(mock_db_session: AsyncMock, user_id):
    mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("read-only"))

    with pytest.raises(SegmentDBOperationError, match="writing audit entry"):
        await SqlAuditLog(mock_db_session).append(_entry(user_id, "A"))


async def test_query_wraps_sqlalchemy_error(mock_db_session: AsyncMock):
    mock_db_session.stream_scalars.side_effect = OperationalError("SELECT", {}, Exception("gone"))

    with pytest.raises(SegmentDBQueryError):
        await _query(SqlAuditLog(mock_db_session), *SEPT)
