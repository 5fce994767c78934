"""Errors raised by the scheduling engine.

Every error carries a human readable ``message`` and, where one input is to
blame, the ``field`` that caused it. Routes translate them into HTTP responses.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling engine errors."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_detail(self) -> dict:
        return {'message': self.message, 'field': self.field}


class ValidationError(SchedulingError):
    """Raised when input is malformed, out of range or breaks a booking rule."""


class ConflictError(ValidationError):
    """Raised when the requested interval overlaps a blocking appointment."""

    def __init__(self, message: str = 'This time slot is already booked.', field: str | None = 'appointment_time') -> None:
        super().__init__(message, field)


class NotFoundError(SchedulingError):
    """Raised when an appointment or a referenced record does not exist."""


class StateError(SchedulingError):
    """Raised when the appointment's current status forbids the operation."""
