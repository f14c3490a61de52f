class SegmentDBException(Exception):
    """Base exception for all segment service DB related errors."""

    pass


class SegmentDBConfigurationError(SegmentDBException):
    """Exception raised when a database configuration is invalid or missing required variables."""

    pass


class SegmentDBConnectionError(SegmentDBException):
    """Exception raised when a connection to the database fails."""

    pass
