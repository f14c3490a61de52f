"""Database-specific exceptions for the segment service."""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from segment_service.exceptions import SegmentDBException


class SegmentDBOperationError(SegmentDBException):
    """Base exception for database operation errors.

    This exception is raised when a database operation fails for any reason.
    It serves as a base class for more specific database operation errors.
    Callers may retry the whole request: no partial commit has happened.
    """

    pass


class SegmentDBQueryError(SegmentDBOperationError):
    """Exception raised when a database query fails."""

    pass


class SegmentDBTransactionError(SegmentDBOperationError):
    """Exception raised when a transaction (commit, rollback) fails or times out."""

    pass


class SegmentDBIntegrityError(SegmentDBOperationError):
    """Exception raised when a database integrity constraint is violated.

    Wraps SQLAlchemy's IntegrityError.
    """

    def __init__(self, message: str, original_error: Optional[IntegrityError] = None):
        """Initialize the exception.

        Args:
            message: A descriptive error message
            original_error: The original IntegrityError that was raised
        """
        super().__init__(message)
        self.original_error = original_error
