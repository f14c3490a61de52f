"""Parsing of the identifiers accepted at the service boundary.

Every function raises a ``ValidationError`` subclass with a fixed message;
nothing here touches storage.
"""

import re
import uuid
from datetime import date
from typing import Iterable, List, Tuple

from segment_service.segments.exceptions import (
    BadRequestError,
    InvalidPeriodFormatError,
    InvalidSlugFormatError,
    InvalidUserIDFormatError,
)

SLUG_PATTERN = re.compile(r"^[\w-]+$", re.ASCII)
PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$", re.ASCII)


def validate_slug(slug: str | None) -> str:
    if slug is None:
        raise BadRequestError()
    if not isinstance(slug, str) or not SLUG_PATTERN.fullmatch(slug):
        raise InvalidSlugFormatError()
    return slug


def validate_slugs(slugs: Iterable[str]) -> List[str]:
    """Validate a slug collection, collapsing duplicates and keeping first-occurrence order."""
    return list(dict.fromkeys(validate_slug(slug) for slug in slugs))


def parse_user_id(value: str | None) -> uuid.UUID:
    """Parse a user identifier given in canonical UUID text form."""
    if not value:
        raise BadRequestError()
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise InvalidUserIDFormatError()


def parse_period(value: str | None) -> Tuple[date, date]:
    """Parse a ``yyyy-mm`` period into the half-open date range ``[first day, first day of next month)``."""
    if not value:
        raise BadRequestError()
    match = PERIOD_PATTERN.fullmatch(value)
    if not match:
        raise InvalidPeriodFormatError()
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise InvalidPeriodFormatError()

    start = date(year, month, 1)
    if month == 12:
        if year == 9999:
            raise InvalidPeriodFormatError()
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end
