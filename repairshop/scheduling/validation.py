"""Booking validation pipeline.

Checks run in a fixed order and the first failure wins:

1. required fields
2. date and time formats
3. start strictly in the future
4. duration range
5. status and priority values
6. client exists
7. vehicle exists and belongs to the client, then service and assignee exist
8. no overlap with a blocking appointment of the same resource

Step 8 is exposed separately through ``ensure_no_conflict`` so callers can run
it under the booking lock together with the write.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable

from repairshop.models.appointment import Appointment
from repairshop.scheduling.conflicts import ConflictChecker
from repairshop.scheduling.errors import ConflictError, NotFoundError, ValidationError
from repairshop.scheduling.intervals import interval_for, parse_date, parse_time
from repairshop.scheduling.policy import SchedulingPolicy
from repairshop.scheduling.schemas import AppointmentDraft, AppointmentPatch
from repairshop.scheduling.status import (
    DEFAULT_PRIORITY,
    SCHEDULED,
    is_blocking,
    validate_priority,
    validate_status,
)
from repairshop.scheduling.stores import ClientStore, ServiceCatalog, StaffDirectory, VehicleStore

REQUIRED_FIELDS = ('client_id', 'vehicle_id', 'appointment_date', 'appointment_time')
RESCHEDULING_FIELDS = frozenset({'appointment_date', 'appointment_time', 'assigned_to', 'estimated_duration'})


@dataclass
class AppointmentUpdate:
    """Validated changes for an existing appointment."""

    values: dict = field(default_factory=dict)
    status: str | None = None
    appointment_date: date | None = None
    assigned_to: int | None = None
    needs_conflict_check: bool = False


class BookingValidator:
    def __init__(
        self,
        *,
        clients: ClientStore,
        vehicles: VehicleStore,
        services: ServiceCatalog,
        staff: StaffDirectory,
        conflicts: ConflictChecker,
        policy: SchedulingPolicy,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.clients = clients
        self.vehicles = vehicles
        self.services = services
        self.staff = staff
        self.conflicts = conflicts
        self.policy = policy
        self.clock = clock

    def validate_create(self, draft: AppointmentDraft) -> Appointment:
        """Run steps 1 to 7 and return an unsaved appointment."""
        for name in REQUIRED_FIELDS:
            if getattr(draft, name) is None:
                raise ValidationError(
                    'Client ID, vehicle ID, date, and time are required.',
                    name,
                )

        appointment_date = parse_date(draft.appointment_date)
        appointment_time = parse_time(draft.appointment_time)
        self.ensure_future(appointment_date, appointment_time)

        if draft.estimated_duration is not None:
            self.ensure_duration(draft.estimated_duration)

        status = validate_status(draft.status) if draft.status is not None else SCHEDULED
        priority = validate_priority(draft.priority) if draft.priority is not None else DEFAULT_PRIORITY

        self.ensure_client_vehicle(draft.client_id, draft.vehicle_id)
        if draft.service_id is not None:
            self.ensure_service(draft.service_id)
        if draft.assigned_to is not None:
            self.ensure_assignee(draft.assigned_to)

        return Appointment(
            client_id=draft.client_id,
            vehicle_id=draft.vehicle_id,
            service_id=draft.service_id,
            assigned_to=draft.assigned_to,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            estimated_duration=self.resolve_duration(draft.estimated_duration, draft.service_id),
            status=status,
            priority=priority,
            notes=draft.notes,
        )

    def validate_update(self, appointment: Appointment, patch: AppointmentPatch) -> AppointmentUpdate:
        """Run the pipeline for the fields present in ``patch``."""
        changes = patch.changes()
        update = AppointmentUpdate()

        appointment_date = appointment.appointment_date
        appointment_time = appointment.appointment_time
        if 'appointment_date' in changes:
            appointment_date = parse_date(changes['appointment_date'])
            update.values['appointment_date'] = appointment_date
        if 'appointment_time' in changes:
            appointment_time = parse_time(changes['appointment_time'])
            update.values['appointment_time'] = appointment_time
        if 'appointment_date' in changes or 'appointment_time' in changes:
            self.ensure_future(appointment_date, appointment_time)

        if 'estimated_duration' in changes:
            update.values['estimated_duration'] = self.ensure_duration(changes['estimated_duration'])

        if 'status' in changes:
            update.status = validate_status(changes['status'])
        if 'priority' in changes:
            update.values['priority'] = validate_priority(changes['priority'])

        if 'client_id' in changes or 'vehicle_id' in changes:
            client_id = changes.get('client_id', appointment.client_id)
            vehicle_id = changes.get('vehicle_id', appointment.vehicle_id)
            self.ensure_client_vehicle(client_id, vehicle_id)
            update.values['client_id'] = client_id
            update.values['vehicle_id'] = vehicle_id

        if 'service_id' in changes:
            if changes['service_id'] is not None:
                self.ensure_service(changes['service_id'])
            update.values['service_id'] = changes['service_id']

        assigned_to = appointment.assigned_to
        if 'assigned_to' in changes:
            assigned_to = changes['assigned_to']
            if assigned_to is not None:
                self.ensure_assignee(assigned_to)
            update.values['assigned_to'] = assigned_to

        if 'notes' in changes:
            update.values['notes'] = changes['notes']

        resulting_status = update.status or appointment.status
        update.appointment_date = appointment_date
        update.assigned_to = assigned_to
        update.needs_conflict_check = bool(RESCHEDULING_FIELDS & changes.keys()) and is_blocking(resulting_status)
        return update

    def ensure_no_conflict(
        self,
        appointment_date: date,
        appointment_time: time,
        duration_minutes: int,
        resource: int | None,
        exclude_appointment_id: int | None = None,
    ) -> None:
        candidate = interval_for(appointment_time, duration_minutes)
        if self.conflicts.has_conflict(appointment_date, candidate, resource, exclude_appointment_id):
            raise ConflictError()

    def ensure_future(self, appointment_date: date, appointment_time: time) -> None:
        if datetime.combine(appointment_date, appointment_time) <= self.clock():
            raise ValidationError('Appointment must be in the future.', 'appointment_date')

    def ensure_duration(self, duration_minutes: int) -> int:
        if not self.policy.min_duration_minutes <= duration_minutes <= self.policy.max_duration_minutes:
            raise ValidationError(
                f'Duration must be between {self.policy.min_duration_minutes} '
                f'and {self.policy.max_duration_minutes} minutes.',
                'estimated_duration',
            )
        return duration_minutes

    def ensure_client_vehicle(self, client_id: int, vehicle_id: int) -> None:
        if not self.clients.exists(client_id):
            raise NotFoundError('Client not found.', 'client_id')
        if not self.vehicles.exists(vehicle_id):
            raise NotFoundError('Vehicle not found.', 'vehicle_id')
        if not self.vehicles.belongs_to(vehicle_id, client_id):
            raise ValidationError('Vehicle does not belong to the specified client.', 'vehicle_id')

    def ensure_service(self, service_id: int) -> None:
        if not self.services.exists(service_id):
            raise NotFoundError('Service not found.', 'service_id')

    def ensure_assignee(self, user_id: int) -> None:
        if not self.staff.is_assignable(user_id):
            raise NotFoundError('Assigned mechanic not found.', 'assigned_to')

    def resolve_duration(self, explicit_minutes: int | None, service_id: int | None) -> int:
        if explicit_minutes is not None:
            return explicit_minutes
        if service_id is not None:
            service_minutes = self.services.default_duration(service_id)
            if service_minutes:
                return service_minutes
        return self.policy.default_duration_minutes
