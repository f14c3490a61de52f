"""Database models, capability implementations and session management."""

from .sqlmodel_models import ReportEntry, Segment, SegmentUser
from .unit_of_work import SqlUnitOfWork

__all__ = [
    "ReportEntry",
    "Segment",
    "SegmentUser",
    "SqlUnitOfWork",
]
