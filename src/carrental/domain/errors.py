"""Booking engine error taxonomy.

Every error carries a stable ``kind`` so callers (HTTP layer, scripts) can
tell them apart without string matching.
"""


class BookingError(Exception):
    """Base class for booking engine errors."""

    kind = "booking_error"


class InvalidIntervalError(BookingError):
    """Raised when a date range is missing a bound or start >= end."""

    kind = "invalid_interval"


class NotFoundError(BookingError):
    """Raised when a car, garage or reservation does not exist."""

    kind = "not_found"


class NotAvailableError(BookingError):
    """Raised when the car is not in the available state."""

    kind = "not_available"


class ConflictError(BookingError):
    """Raised on an overlapping interval or a duplicate review."""

    kind = "conflict"

    def __init__(self, message: str, *, conflicting_id: str | None = None) -> None:
        self.conflicting_id = conflicting_id
        super().__init__(message)


class ForbiddenError(BookingError):
    """Raised on an ownership mismatch or a missing prerequisite."""

    kind = "forbidden"


class ValidationError(BookingError):
    """Raised when an input value is out of range."""

    kind = "validation_error"


class InvalidStateError(BookingError):
    """Raised on an illegal reservation transition (e.g. double cancel)."""

    kind = "invalid_state"
