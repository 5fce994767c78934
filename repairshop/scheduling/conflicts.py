"""Overlap detection between a candidate interval and existing bookings."""

from datetime import date
from typing import Iterable

from repairshop.models.appointment import Appointment
from repairshop.scheduling.intervals import Interval, interval_for, overlaps
from repairshop.scheduling.stores import AppointmentStore


def appointment_interval(appointment: Appointment) -> Interval:
    return interval_for(appointment.appointment_time, appointment.estimated_duration)


def find_overlap(candidate: Interval, booked: Iterable[Interval]) -> Interval | None:
    for interval in booked:
        if overlaps(candidate, interval):
            return interval
    return None


class ConflictChecker:
    def __init__(self, appointments: AppointmentStore, *, unassigned_is_shared: bool = True) -> None:
        self.appointments = appointments
        self.unassigned_is_shared = unassigned_is_shared

    def booked_intervals(
        self,
        appointment_date: date,
        resource,
        exclude_appointment_id: int | None = None,
    ) -> list[Interval]:
        """Intervals of blocking appointments that compete with ``resource`` on the date."""
        if resource is None and not self.unassigned_is_shared:
            return []

        booked = self.appointments.blocking_on(appointment_date, resource, exclude_appointment_id)
        return [appointment_interval(appointment) for appointment in booked]

    def has_conflict(
        self,
        appointment_date: date,
        candidate: Interval,
        resource,
        exclude_appointment_id: int | None = None,
    ) -> bool:
        booked = self.booked_intervals(appointment_date, resource, exclude_appointment_id)
        return find_overlap(candidate, booked) is not None
