"""Appointment status values and the transitions between them.

Any status may be set from any other. Completing an appointment stamps its
actual end time; leaving ``completed`` clears it again.
"""

from datetime import datetime

from repairshop.models.appointment import Appointment
from repairshop.scheduling.errors import StateError, ValidationError

SCHEDULED = 'scheduled'
CONFIRMED = 'confirmed'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
NO_SHOW = 'no_show'

APPOINTMENT_STATUSES = (SCHEDULED, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED, NO_SHOW)
BLOCKING_STATUSES = frozenset({SCHEDULED, CONFIRMED, IN_PROGRESS})

APPOINTMENT_PRIORITIES = ('low', 'normal', 'high', 'urgent')
DEFAULT_PRIORITY = 'normal'


def is_blocking(status: str) -> bool:
    return status in BLOCKING_STATUSES


def validate_status(value: str) -> str:
    if value not in APPOINTMENT_STATUSES:
        raise ValidationError('Invalid appointment status.', 'status')
    return value


def validate_priority(value: str) -> str:
    if value not in APPOINTMENT_PRIORITIES:
        raise ValidationError('Invalid appointment priority.', 'priority')
    return value


def apply_status(appointment: Appointment, new_status: str, now: datetime) -> str:
    """Move ``appointment`` to ``new_status`` and return the previous status."""
    validate_status(new_status)
    previous_status = appointment.status
    appointment.status = new_status

    if new_status == COMPLETED:
        appointment.actual_end_time = now
    else:
        appointment.actual_end_time = None

    return previous_status


def reenters_blocking(previous_status: str, new_status: str) -> bool:
    return not is_blocking(previous_status) and is_blocking(new_status)


def ensure_deletable(appointment: Appointment) -> None:
    if appointment.status == IN_PROGRESS:
        raise StateError('Cannot delete an appointment in progress.', 'status')
