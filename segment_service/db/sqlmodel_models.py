import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlmodel import Field, SQLModel

from segment_service.segments.models import utc_now

# SQLModel models combining SQLAlchemy and Pydantic


class Segment(SQLModel, table=True):
    """A named group users can belong to. ``name`` holds the slug."""

    __tablename__ = "segments"  # type: ignore (shut up pyright)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String, unique=True, index=True, nullable=False))


class SegmentUser(SQLModel, table=True):
    """Membership of a user in a segment. Rows are removed with their segment."""

    __tablename__ = "segments_users"  # type: ignore

    segments_id: int = Field(
        sa_column=Column(Integer, ForeignKey("segments.id", ondelete="CASCADE"), primary_key=True),
    )
    user_id: uuid.UUID = Field(primary_key=True, index=True)


class ReportEntry(SQLModel, table=True):
    """Audit log row for one effective membership change.

    The slug is stored as text rather than a foreign key so history outlives the segment.
    """

    __tablename__ = "report"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: uuid.UUID = Field(nullable=False)
    segment_slug: str = Field(sa_column=Column(String, nullable=False))
    action: str = Field(sa_column=Column(String(16), nullable=False))
    # Naive UTC to match TIMESTAMP WITHOUT TIME ZONE
    created_at: dt.datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=False), nullable=False),
    )

    __table_args__ = (
        Index("idx_report_created_at", "created_at"),
        Index("idx_report_user_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReportEntry(id={self.id}, user_id='{self.user_id}', "
            f"segment_slug='{self.segment_slug}', action='{self.action}', created_at='{self.created_at}')>"
        )
