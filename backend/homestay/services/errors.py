"""Typed failures raised by the service layer.

Routers let these propagate; ``homestay.api.errors`` maps each one to an
HTTP status code.
"""


class BookingEngineError(Exception):
    """Base class for service-layer failures."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(BookingEngineError):
    """A referenced booking, property, payment or review does not exist."""

    status_code = 404


class UnauthorizedError(BookingEngineError):
    """The caller lacks the role or ownership needed for the mutation."""

    status_code = 403


class InvalidBookingError(BookingEngineError):
    """Malformed or out-of-range input, or an illegal state change."""

    status_code = 400


class ConflictError(BookingEngineError):
    """The request collides with existing state (overlap, duplicate)."""

    status_code = 409
