"""Calendar math for appointment intervals.

Intervals are half-open ``[start, end)`` ranges in minutes since midnight of
the appointment date. Ends past midnight are kept as-is and never wrapped.
"""

import re
from datetime import date, datetime, time
from typing import NamedTuple

from repairshop.scheduling.errors import ValidationError

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^\d{2}:\d{2}$')
MINUTES_PER_HOUR = 60


class Interval(NamedTuple):
    start: int
    end: int


def minutes_since_midnight(value: time) -> int:
    return value.hour * MINUTES_PER_HOUR + value.minute


def time_from_minutes(minutes: int) -> time:
    hours, remainder = divmod(minutes, MINUTES_PER_HOUR)
    return time(hours, remainder)


def interval_for(start_time: time, duration_minutes: int) -> Interval:
    start = minutes_since_midnight(start_time)
    return Interval(start, start + duration_minutes)


def overlaps(first: Interval, second: Interval) -> bool:
    # Intervals that only touch at an endpoint do not overlap.
    return first.start < second.end and first.end > second.start


def parse_date(value: str, field: str = 'appointment_date') -> date:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError('Invalid date format (YYYY-MM-DD required).', field)
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError as exc:
        raise ValidationError('Invalid calendar date.', field) from exc


def parse_time(value: str, field: str = 'appointment_time') -> time:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationError('Invalid time format (HH:MM required).', field)
    try:
        return datetime.strptime(value, '%H:%M').time()
    except ValueError as exc:
        raise ValidationError('Invalid time of day.', field) from exc


def format_time(value: time) -> str:
    return value.strftime('%H:%M')
