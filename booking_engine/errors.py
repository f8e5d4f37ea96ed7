"""
Caller-visible error taxonomy for the booking engine.

Every failure an engine operation can report is one of these exceptions.
Each kind carries a stable ``code``, an HTTP-like ``status`` and an
actionable message so clients can map them one-to-one onto UI feedback.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for all recoverable engine errors."""

    code = "booking_error"
    status = 400

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(BookingError):
    """Malformed input, e.g. a bad time format or a too-short window."""

    code = "validation_error"
    status = 422


class InvalidArgument(BookingError):
    """Well-formed but semantically invalid input, e.g. min_gig_duration < 30."""

    code = "invalid_argument"
    status = 400


class Conflict(BookingError):
    """Duplicate slot, double booking, or deleting something still in use."""

    code = "conflict"
    status = 409


class AlreadyExists(Conflict):
    """The resource being created already exists for this owner."""

    code = "already_exists"


class Forbidden(BookingError):
    """The acting party is not allowed to perform this operation."""

    code = "forbidden"
    status = 403


class InvalidStateTransition(BookingError):
    """The requested contract status change is not an edge of the lifecycle."""

    code = "invalid_state_transition"
    status = 409


class NotFound(BookingError):
    """The referenced entity does not exist or does not belong to the caller."""

    code = "not_found"
    status = 404


def to_error_payload(exc: BookingError) -> dict[str, Any]:
    """Render an engine error in the API's ErrorResponse shape."""
    payload: dict[str, Any] = {
        "error": True,
        "status": exc.status,
        "code": exc.code,
        "message": exc.message,
    }
    if exc.field:
        payload["details"] = exc.field
    return payload


def from_pydantic(exc: Any) -> ValidationError:
    """Translate a pydantic ValidationError into the engine's ValidationError.

    Only the first reported problem is kept; its location becomes the field.
    """
    errors = exc.errors()
    if not errors:
        return ValidationError(str(exc))
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return ValidationError(first.get("msg", "invalid value"), field=loc or None)
