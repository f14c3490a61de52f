import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Naive UTC timestamp, matching TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AuditAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class AuditEntry(BaseModel):
    """One effective membership state transition.

    Attributes:
        user_id: The user whose membership changed.
        segment_slug: Slug of the segment at the time of the change.
        action: Whether the user was added to or removed from the segment.
        timestamp: Naive UTC time the change was recorded.
    """

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    segment_slug: str
    action: AuditAction
    timestamp: datetime = Field(default_factory=utc_now)


class MutationResult(BaseModel):
    """Effective changes applied by a single membership mutation, in application order."""

    user_id: uuid.UUID
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)
