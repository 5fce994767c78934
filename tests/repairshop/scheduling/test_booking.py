from datetime import timedelta

import pytest

from conftest import (
    BOOKING_DATE,
    BOOKING_DATE_TEXT,
    FIXED_NOW,
    MECHANIC_ID,
    OTHER_MECHANIC_ID,
    RECEPTIONIST_ID,
)

from repairshop.models.appointment import Appointment
from repairshop.scheduling.errors import ConflictError, NotFoundError, ValidationError
from repairshop.scheduling.policy import SchedulingPolicy
from repairshop.scheduling.schemas import AppointmentDraft
from repairshop.scheduling.service import AppointmentScheduler


def draft(**overrides) -> AppointmentDraft:
    values = {
        'client_id': 1,
        'vehicle_id': 1,
        'appointment_date': BOOKING_DATE_TEXT,
        'appointment_time': '09:00',
        'assigned_to': MECHANIC_ID,
    }
    values.update(overrides)
    return AppointmentDraft(**values)


def test_create_appointment_applies_defaults(scheduler, seeded_db, events) -> None:
    appointment = scheduler.create_appointment(draft(assigned_to=None, notes='  Squeaky brakes  '))

    assert appointment.id is not None
    assert appointment.appointment_date == BOOKING_DATE
    assert appointment.estimated_duration == 60
    assert appointment.status == 'scheduled'
    assert appointment.priority == 'normal'
    assert appointment.notes == 'Squeaky brakes'
    assert appointment.actual_end_time is None
    assert seeded_db.query(Appointment).count() == 1
    assert events.names() == ['appointment_created']
    assert events.events[0][1]['date'] == BOOKING_DATE_TEXT
    assert events.events[0][1]['time'] == '09:00'


def test_service_default_duration_is_used_when_duration_missing(scheduler) -> None:
    appointment = scheduler.create_appointment(draft(service_id=1))

    assert appointment.estimated_duration == 90


def test_explicit_duration_wins_over_service_default(scheduler) -> None:
    appointment = scheduler.create_appointment(draft(service_id=1, estimated_duration=30))

    assert appointment.estimated_duration == 30


def test_service_without_duration_falls_back_to_policy_default(scheduler) -> None:
    appointment = scheduler.create_appointment(draft(service_id=2))

    assert appointment.estimated_duration == 60


@pytest.mark.parametrize('missing_field', ['client_id', 'vehicle_id', 'appointment_date', 'appointment_time'])
def test_required_fields(scheduler, missing_field: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(**{missing_field: None}))

    assert exception_info.value.field == missing_field


def test_required_fields_are_checked_before_formats(scheduler) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(appointment_date='June 10', client_id=None))

    assert exception_info.value.field == 'client_id'


def test_date_format_is_checked_before_time_format(scheduler) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(appointment_date='2025/06/10', appointment_time='9am'))

    assert exception_info.value.field == 'appointment_date'
    assert exception_info.value.message == 'Invalid date format (YYYY-MM-DD required).'


def test_time_format_is_validated(scheduler) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(appointment_time='9:00'))

    assert exception_info.value.field == 'appointment_time'
    assert exception_info.value.message == 'Invalid time format (HH:MM required).'


def test_booking_one_minute_in_the_past_is_rejected(scheduler) -> None:
    past = FIXED_NOW - timedelta(minutes=1)

    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(
            draft(appointment_date=past.strftime('%Y-%m-%d'), appointment_time=past.strftime('%H:%M'))
        )

    assert exception_info.value.message == 'Appointment must be in the future.'


def test_booking_at_exactly_now_is_rejected(scheduler) -> None:
    with pytest.raises(ValidationError):
        scheduler.create_appointment(
            draft(appointment_date=FIXED_NOW.strftime('%Y-%m-%d'), appointment_time=FIXED_NOW.strftime('%H:%M'))
        )


def test_booking_one_minute_ahead_is_accepted(scheduler) -> None:
    soon = FIXED_NOW + timedelta(minutes=1)

    appointment = scheduler.create_appointment(
        draft(appointment_date=soon.strftime('%Y-%m-%d'), appointment_time=soon.strftime('%H:%M'))
    )

    assert appointment.id is not None


@pytest.mark.parametrize('duration', [14, 481])
def test_out_of_range_durations_are_rejected(scheduler, duration: int) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(estimated_duration=duration))

    assert exception_info.value.field == 'estimated_duration'


@pytest.mark.parametrize(('duration', 'start'), [(15, '08:00'), (480, '09:00')])
def test_boundary_durations_are_accepted(scheduler, duration: int, start: str) -> None:
    appointment = scheduler.create_appointment(draft(estimated_duration=duration, appointment_time=start))

    assert appointment.estimated_duration == duration


def test_unknown_status_is_rejected(scheduler) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(status='pending'))

    assert exception_info.value.field == 'status'


def test_unknown_priority_is_rejected(scheduler) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(priority='critical'))

    assert exception_info.value.field == 'priority'


def test_explicit_status_and_priority_are_normalized(scheduler) -> None:
    appointment = scheduler.create_appointment(draft(status=' Confirmed ', priority='URGENT'))

    assert appointment.status == 'confirmed'
    assert appointment.priority == 'urgent'


def test_missing_client_is_not_found(scheduler) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        scheduler.create_appointment(draft(client_id=99))

    assert exception_info.value.field == 'client_id'


def test_missing_vehicle_is_not_found(scheduler) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        scheduler.create_appointment(draft(vehicle_id=99))

    assert exception_info.value.field == 'vehicle_id'


def test_vehicle_of_another_client_is_rejected(scheduler) -> None:
    with pytest.raises(ValidationError) as exception_info:
        scheduler.create_appointment(draft(vehicle_id=2))

    assert exception_info.value.field == 'vehicle_id'
    assert exception_info.value.message == 'Vehicle does not belong to the specified client.'


def test_missing_service_is_not_found(scheduler) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        scheduler.create_appointment(draft(service_id=42))

    assert exception_info.value.field == 'service_id'


def test_assignee_must_be_a_mechanic(scheduler) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        scheduler.create_appointment(draft(assigned_to=RECEPTIONIST_ID))

    assert exception_info.value.field == 'assigned_to'


def test_overlapping_booking_for_same_mechanic_is_rejected(scheduler, seeded_db, events) -> None:
    scheduler.create_appointment(draft(appointment_time='09:00'))

    with pytest.raises(ConflictError) as exception_info:
        scheduler.create_appointment(draft(appointment_time='09:30'))

    assert exception_info.value.field == 'appointment_time'
    assert seeded_db.query(Appointment).count() == 1
    assert events.names() == ['appointment_created']


def test_conflict_is_also_a_validation_error(scheduler) -> None:
    scheduler.create_appointment(draft())

    with pytest.raises(ValidationError):
        scheduler.create_appointment(draft())


def test_same_interval_for_different_mechanics_succeeds(scheduler, seeded_db) -> None:
    scheduler.create_appointment(draft(assigned_to=MECHANIC_ID, appointment_time='09:00'))
    scheduler.create_appointment(draft(assigned_to=OTHER_MECHANIC_ID, appointment_time='09:30'))

    assert seeded_db.query(Appointment).count() == 2


def test_back_to_back_bookings_succeed(scheduler, seeded_db) -> None:
    scheduler.create_appointment(draft(appointment_time='09:00'))
    scheduler.create_appointment(draft(appointment_time='10:00'))

    assert seeded_db.query(Appointment).count() == 2


@pytest.mark.parametrize('status', ['cancelled', 'completed', 'no_show'])
def test_terminal_appointments_never_block(scheduler, status: str) -> None:
    existing = scheduler.create_appointment(draft())
    scheduler.set_status(existing.id, status)

    appointment = scheduler.create_appointment(draft())

    assert appointment.id != existing.id


def test_unassigned_bookings_conflict_with_each_other(scheduler) -> None:
    scheduler.create_appointment(draft(assigned_to=None))

    with pytest.raises(ConflictError):
        scheduler.create_appointment(draft(assigned_to=None, appointment_time='09:30'))


def test_unassigned_bookings_do_not_block_assigned_ones(scheduler, seeded_db) -> None:
    scheduler.create_appointment(draft(assigned_to=None))
    scheduler.create_appointment(draft(assigned_to=MECHANIC_ID))

    assert seeded_db.query(Appointment).count() == 2


def test_unassigned_bookings_unconstrained_when_policy_disabled(seeded_db, events) -> None:
    scheduler = AppointmentScheduler(
        seeded_db,
        events=events,
        policy=SchedulingPolicy(unassigned_is_shared=False),
        clock=lambda: FIXED_NOW,
    )

    scheduler.create_appointment(draft(assigned_to=None))
    scheduler.create_appointment(draft(assigned_to=None))

    assert seeded_db.query(Appointment).count() == 2


def test_non_blocking_new_appointment_skips_conflict_check(scheduler, seeded_db) -> None:
    scheduler.create_appointment(draft())
    scheduler.create_appointment(draft(status='cancelled'))

    assert seeded_db.query(Appointment).count() == 2


def test_event_log_failure_does_not_fail_booking(seeded_db) -> None:
    class BrokenEventLog:
        def record(self, event_name, payload):
            raise RuntimeError('event sink offline')

    scheduler = AppointmentScheduler(
        seeded_db,
        events=BrokenEventLog(),
        policy=SchedulingPolicy(),
        clock=lambda: FIXED_NOW,
    )

    appointment = scheduler.create_appointment(draft())

    assert appointment.id is not None
