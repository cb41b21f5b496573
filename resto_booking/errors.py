"""Booking error taxonomy

Expected business rejections (availability, automatic assignment) are returned
as structured results carrying a reason. The exceptions below are for malformed
input, unresolved ids, conflicting writes and illegal lifecycle moves.
"""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for errors surfaced to API callers"""

    code = "booking_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.code, "detail": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BookingError):
    """Malformed input: non-positive guest count, unknown service type..."""

    code = "validation_error"
    status_code = 422


class NotFoundError(BookingError):
    """Reservation, table or restaurant id could not be resolved"""

    code = "not_found"
    status_code = 404


class ConflictError(BookingError):
    """Table double-booking or a transition based on outdated state"""

    code = "conflict"
    status_code = 409


class StaleWriteError(ConflictError):
    """The record changed since the caller read it"""

    code = "stale_write"


class InvalidTransitionError(BookingError):
    """Illegal reservation lifecycle move"""

    code = "invalid_transition"
    status_code = 409


class InvalidTableError(BookingError):
    """Table is foreign to the restaurant or inactive"""

    code = "invalid_table"
    status_code = 422


class NotEntitledError(BookingError):
    """Account has no active subscription"""

    code = "not_entitled"
    status_code = 402
