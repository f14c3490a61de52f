import csv
import io
from datetime import date, datetime, time, timedelta, timezone
from typing import AsyncIterator, List, Tuple

from segment_service.segments.models import AuditEntry

REPORT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ReportProjector:
    """Projects audit log entries onto flat report rows.

    Stored timestamps are naive UTC. Rows show them at a fixed display offset with
    second precision, and report periods are calendar months in that same zone.
    """

    def __init__(self, tz_offset_hours: int = 3) -> None:
        self.display_tz = timezone(timedelta(hours=tz_offset_hours))

    def period_bounds(self, start: date, end: date) -> Tuple[datetime, datetime]:
        """Convert a half-open date range in the display zone into naive UTC datetimes."""
        return self._to_naive_utc(start), self._to_naive_utc(end)

    def format_timestamp(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.display_tz).strftime(REPORT_TIMESTAMP_FORMAT)

    def to_row(self, entry: AuditEntry) -> List[str]:
        return [str(entry.user_id), entry.segment_slug, entry.action.value, self.format_timestamp(entry.timestamp)]

    async def rows(self, entries: AsyncIterator[AuditEntry]) -> AsyncIterator[List[str]]:
        async for entry in entries:
            yield self.to_row(entry)

    async def render_csv(self, entries: AsyncIterator[AuditEntry]) -> AsyncIterator[str]:
        """Render entries as CSV text, one chunk per row, without a header."""
        async for row in self.rows(entries):
            buffer = io.StringIO()
            csv.writer(buffer, lineterminator="\n").writerow(row)
            yield buffer.getvalue()

    def _to_naive_utc(self, day: date) -> datetime:
        local_midnight = datetime.combine(day, time.min, tzinfo=self.display_tz)
        return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)
