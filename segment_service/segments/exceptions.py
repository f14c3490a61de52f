# Segment domain exceptions.
#
# Messages are part of the HTTP contract and are returned to clients verbatim.


class SegmentServiceError(Exception):
    """Base exception for validation and domain errors raised by the segment service."""

    message: str = "segment service error"
    status_code: int = 400

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.message
        super().__init__(self.detail)


# --- Validation errors: rejected before touching storage ---


class ValidationError(SegmentServiceError):
    """Base exception for malformed input."""

    pass


class InvalidSlugFormatError(ValidationError):
    message = "invalid format of parameter 'slug'"


class InvalidUserIDFormatError(ValidationError):
    message = "invalid format of parameter 'userID'"


class InvalidPeriodFormatError(ValidationError):
    message = "invalid format of parameter 'period'"


class BadRequestError(ValidationError):
    message = "missing required parameters"


# --- Domain errors: reported verbatim, never retried ---


class SegmentAlreadyExistsError(SegmentServiceError):
    message = "segment with this slug already exists"
    status_code = 400

    def __init__(self, slug: str | None = None):
        super().__init__()
        self.slug = slug


class SegmentNotFoundError(SegmentServiceError):
    message = "segment not found"
    status_code = 404

    def __init__(self, slug: str | None = None):
        super().__init__()
        self.slug = slug
