"""Bookable start times for one day."""

from dataclasses import dataclass
from datetime import date, time
from typing import Iterator

from repairshop.scheduling.conflicts import ConflictChecker, find_overlap
from repairshop.scheduling.errors import ValidationError
from repairshop.scheduling.intervals import (
    Interval,
    format_time,
    minutes_since_midnight,
    time_from_minutes,
)
from repairshop.scheduling.policy import SchedulingPolicy
from repairshop.scheduling.stores import ANY_RESOURCE


@dataclass(frozen=True)
class SlotAvailability:
    date: date
    slots: list[str]
    duration_minutes: int
    working_hours: dict[str, str]


class SlotGenerator:
    def __init__(self, conflicts: ConflictChecker, policy: SchedulingPolicy) -> None:
        self.conflicts = conflicts
        self.policy = policy

    def iter_slots(self, slot_date: date, duration_minutes: int, resource=ANY_RESOURCE) -> Iterator[time]:
        """Yield each admissible start time in ascending order.

        The bookings for the day are read when iteration starts, so every call
        reflects the current state of the store.
        """
        if duration_minutes <= 0:
            raise ValidationError('Duration must be a positive number of minutes.', 'duration_minutes')

        booked = self.conflicts.booked_intervals(slot_date, resource)
        opening = minutes_since_midnight(self.policy.opening_time)
        closing = minutes_since_midnight(self.policy.closing_time)

        step = opening
        while step < closing:
            candidate = Interval(step, step + duration_minutes)
            if candidate.end <= closing and find_overlap(candidate, booked) is None:
                yield time_from_minutes(step)
            step += self.policy.slot_increment_minutes

    def available_slots(self, slot_date: date, duration_minutes: int, resource=ANY_RESOURCE) -> SlotAvailability:
        slots = [format_time(slot) for slot in self.iter_slots(slot_date, duration_minutes, resource)]
        return SlotAvailability(
            date=slot_date,
            slots=slots,
            duration_minutes=duration_minutes,
            working_hours={
                'start': format_time(self.policy.opening_time),
                'end': format_time(self.policy.closing_time),
            },
        )
