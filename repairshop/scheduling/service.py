"""Appointment scheduling operations.

``AppointmentScheduler`` is built per unit of work around one SQLAlchemy
session. It owns the transaction: every operation either commits all of its
changes or rolls back and raises.
"""

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from repairshop.core.events import EventLog, LoggingEventLog
from repairshop.models.appointment import Appointment
from repairshop.scheduling.conflicts import ConflictChecker
from repairshop.scheduling.errors import NotFoundError, ValidationError
from repairshop.scheduling.intervals import format_time, parse_date
from repairshop.scheduling.policy import SchedulingPolicy
from repairshop.scheduling.schemas import AppointmentDraft, AppointmentPatch
from repairshop.scheduling.slots import SlotAvailability, SlotGenerator
from repairshop.scheduling.status import (
    apply_status,
    ensure_deletable,
    is_blocking,
    reenters_blocking,
    validate_status,
)
from repairshop.scheduling.stores import (
    ANY_RESOURCE,
    AppointmentStore,
    ClientStore,
    ServiceCatalog,
    SqlAppointmentStore,
    SqlClientStore,
    SqlServiceCatalog,
    SqlStaffDirectory,
    SqlVehicleStore,
    StaffDirectory,
    VehicleStore,
    booking_lock,
)
from repairshop.scheduling.validation import BookingValidator

logger = logging.getLogger(__name__)


class AppointmentScheduler:
    def __init__(
        self,
        db: Session,
        *,
        appointments: AppointmentStore | None = None,
        clients: ClientStore | None = None,
        vehicles: VehicleStore | None = None,
        services: ServiceCatalog | None = None,
        staff: StaffDirectory | None = None,
        events: EventLog | None = None,
        policy: SchedulingPolicy | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db = db
        self.policy = policy or SchedulingPolicy.from_config()
        self.clock = clock
        self.appointments = appointments or SqlAppointmentStore(db)
        self.events = events or LoggingEventLog()
        self.conflicts = ConflictChecker(self.appointments, unassigned_is_shared=self.policy.unassigned_is_shared)
        self.slots = SlotGenerator(self.conflicts, self.policy)
        self.validator = BookingValidator(
            clients=clients or SqlClientStore(db),
            vehicles=vehicles or SqlVehicleStore(db),
            services=services or SqlServiceCatalog(db),
            staff=staff or SqlStaffDirectory(db),
            conflicts=self.conflicts,
            policy=self.policy,
            clock=clock,
        )

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError('Appointment not found.', 'id')
        return appointment

    def create_appointment(self, draft: AppointmentDraft) -> Appointment:
        try:
            appointment = self.validator.validate_create(draft)

            with booking_lock(self.db, appointment.appointment_date, appointment.assigned_to):
                if is_blocking(appointment.status):
                    self.validator.ensure_no_conflict(
                        appointment.appointment_date,
                        appointment.appointment_time,
                        appointment.estimated_duration,
                        appointment.assigned_to,
                    )
                self.appointments.add(appointment)
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            'Created appointment %s on %s at %s',
            appointment.id,
            appointment.appointment_date,
            format_time(appointment.appointment_time),
        )
        self._record('appointment_created', {
            'appointment_id': appointment.id,
            'client_id': appointment.client_id,
            'vehicle_id': appointment.vehicle_id,
            'date': appointment.appointment_date.isoformat(),
            'time': format_time(appointment.appointment_time),
        })
        return appointment

    def update_appointment(self, appointment_id: int, patch: AppointmentPatch) -> Appointment:
        try:
            appointment = self.get_appointment(appointment_id)
            update = self.validator.validate_update(appointment, patch)

            if update.status is not None and reenters_blocking(appointment.status, update.status):
                update.needs_conflict_check = True

            with booking_lock(self.db, update.appointment_date, update.assigned_to):
                if update.needs_conflict_check:
                    self.validator.ensure_no_conflict(
                        update.appointment_date,
                        update.values.get('appointment_time', appointment.appointment_time),
                        update.values.get('estimated_duration', appointment.estimated_duration),
                        update.assigned_to,
                        exclude_appointment_id=appointment.id,
                    )

                for name, value in update.values.items():
                    setattr(appointment, name, value)
                if update.status is not None:
                    apply_status(appointment, update.status, self.clock())
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        self._record('appointment_updated', {
            'appointment_id': appointment.id,
            'status': appointment.status,
            'fields': sorted(update.values),
        })
        return appointment

    def set_status(self, appointment_id: int, status: str | None, notes: str | None = None) -> Appointment:
        try:
            if not status:
                raise ValidationError('Status is required.', 'status')
            validate_status(status)

            appointment = self.get_appointment(appointment_id)
            with booking_lock(self.db, appointment.appointment_date, appointment.assigned_to):
                if reenters_blocking(appointment.status, status):
                    self.validator.ensure_no_conflict(
                        appointment.appointment_date,
                        appointment.appointment_time,
                        appointment.estimated_duration,
                        appointment.assigned_to,
                        exclude_appointment_id=appointment.id,
                    )

                previous_status = apply_status(appointment, status, self.clock())
                if notes is not None:
                    appointment.internal_notes = notes
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        self._record('appointment_status_updated', {
            'appointment_id': appointment.id,
            'old_status': previous_status,
            'new_status': appointment.status,
        })
        return appointment

    def delete_appointment(self, appointment_id: int) -> None:
        try:
            appointment = self.get_appointment(appointment_id)
            ensure_deletable(appointment)

            payload = {
                'appointment_id': appointment.id,
                'date': appointment.appointment_date.isoformat(),
                'time': format_time(appointment.appointment_time),
            }
            self.appointments.delete(appointment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self._record('appointment_deleted', payload)

    def available_slots(
        self,
        slot_date: str,
        duration_minutes: int | None = None,
        resource=ANY_RESOURCE,
    ) -> SlotAvailability:
        parsed_date = parse_date(slot_date, 'date')
        if duration_minutes is None:
            duration_minutes = self.policy.default_duration_minutes
        return self.slots.available_slots(parsed_date, duration_minutes, resource)

    def _record(self, event_name: str, payload: dict) -> None:
        try:
            self.events.record(event_name, payload)
        except Exception:
            logger.exception('Failed to record business event %s', event_name)
