"""Collaborator interfaces consumed by the scheduling engine.

The engine only talks to these protocols. The ``Sql*`` classes implement them
on top of a SQLAlchemy session; tests and other callers may pass their own.
"""

from contextlib import contextmanager
from datetime import date
from threading import Lock
from typing import Iterator, Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session

from repairshop.models.appointment import Appointment
from repairshop.models.client import Client
from repairshop.models.service import Service
from repairshop.models.user import User
from repairshop.models.vehicle import Vehicle
from repairshop.scheduling.status import BLOCKING_STATUSES

ASSIGNABLE_ROLES = ('mechanic', 'manager', 'owner')
UNASSIGNED_LOCK_KEY = -1


class _AnyResource:
    def __repr__(self) -> str:
        return 'ANY_RESOURCE'


# Selects every appointment on a date, whoever it is assigned to.
ANY_RESOURCE = _AnyResource()


class ClientStore(Protocol):
    def exists(self, client_id: int) -> bool: ...


class VehicleStore(Protocol):
    def exists(self, vehicle_id: int) -> bool: ...

    def belongs_to(self, vehicle_id: int, client_id: int) -> bool: ...


class ServiceCatalog(Protocol):
    def exists(self, service_id: int) -> bool: ...

    def default_duration(self, service_id: int) -> int | None: ...


class StaffDirectory(Protocol):
    def is_assignable(self, user_id: int) -> bool: ...


class AppointmentStore(Protocol):
    def get(self, appointment_id: int) -> Appointment | None: ...

    def blocking_on(
        self,
        appointment_date: date,
        resource,
        exclude_appointment_id: int | None = None,
    ) -> list[Appointment]: ...

    def add(self, appointment: Appointment) -> None: ...

    def delete(self, appointment: Appointment) -> None: ...


class SqlClientStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, client_id: int) -> bool:
        return self.db.query(Client.id).filter(Client.id == client_id).first() is not None


class SqlVehicleStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, vehicle_id: int) -> bool:
        return self.db.query(Vehicle.id).filter(Vehicle.id == vehicle_id).first() is not None

    def belongs_to(self, vehicle_id: int, client_id: int) -> bool:
        match = self.db.query(Vehicle.id).filter(
            Vehicle.id == vehicle_id,
            Vehicle.client_id == client_id,
        ).first()
        return match is not None


class SqlServiceCatalog:
    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, service_id: int) -> bool:
        return self.db.query(Service.id).filter(Service.id == service_id).first() is not None

    def default_duration(self, service_id: int) -> int | None:
        row = self.db.query(Service.estimated_duration).filter(Service.id == service_id).first()
        if row is None:
            return None
        return row[0]


class SqlStaffDirectory:
    def __init__(self, db: Session) -> None:
        self.db = db

    def is_assignable(self, user_id: int) -> bool:
        match = self.db.query(User.id).filter(
            User.id == user_id,
            User.role.in_(ASSIGNABLE_ROLES),
        ).first()
        return match is not None


class SqlAppointmentStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, appointment_id: int) -> Appointment | None:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def blocking_on(
        self,
        appointment_date: date,
        resource,
        exclude_appointment_id: int | None = None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.appointment_date == appointment_date,
            Appointment.status.in_(BLOCKING_STATUSES),
        )

        if resource is None:
            query = query.filter(Appointment.assigned_to.is_(None))
        elif resource is not ANY_RESOURCE:
            query = query.filter(Appointment.assigned_to == resource)

        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return query.order_by(Appointment.appointment_time.asc()).all()

    def add(self, appointment: Appointment) -> None:
        self.db.add(appointment)

    def delete(self, appointment: Appointment) -> None:
        self.db.delete(appointment)


_local_locks: dict[tuple[int, int], Lock] = {}
_local_locks_guard = Lock()


def _local_lock_for(key: tuple[int, int]) -> Lock:
    with _local_locks_guard:
        lock = _local_locks.get(key)
        if lock is None:
            lock = Lock()
            _local_locks[key] = lock
        return lock


def booking_lock_key(appointment_date: date, resource: int | None) -> tuple[int, int]:
    return appointment_date.toordinal(), UNASSIGNED_LOCK_KEY if resource is None else int(resource)


@contextmanager
def booking_lock(db: Session, appointment_date: date, resource: int | None) -> Iterator[None]:
    """Serialize check-then-write sequences for one (date, resource) pair.

    On PostgreSQL a transaction-scoped advisory lock is taken, released by the
    caller's commit or rollback. Other databases fall back to a process-local
    lock held for the duration of the block, so the commit must happen inside it.
    """
    key = booking_lock_key(appointment_date, resource)

    if db.get_bind().dialect.name == 'postgresql':
        db.execute(text('SELECT pg_advisory_xact_lock(:k1, :k2)'), {'k1': key[0], 'k2': key[1]})
        yield
        return

    with _local_lock_for(key):
        yield
