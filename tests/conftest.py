import os
from datetime import date, datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from repairshop.database import Base  # noqa: E402
from repairshop.models.appointment import Appointment  # noqa: E402
from repairshop.models.client import Client  # noqa: E402
from repairshop.models.service import Service  # noqa: E402
from repairshop.models.user import User  # noqa: E402
from repairshop.models.vehicle import Vehicle  # noqa: E402
from repairshop.scheduling.policy import SchedulingPolicy  # noqa: E402
from repairshop.scheduling.service import AppointmentScheduler  # noqa: E402
from repairshop.scheduling.status import BLOCKING_STATUSES  # noqa: E402
from repairshop.scheduling.stores import ANY_RESOURCE  # noqa: E402

FIXED_NOW = datetime(2025, 6, 1, 12, 0)
BOOKING_DATE = date(2025, 6, 10)
BOOKING_DATE_TEXT = '2025-06-10'
MECHANIC_ID = 1
OTHER_MECHANIC_ID = 2
RECEPTIONIST_ID = 3


class RecordingEventLog:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def record(self, event_name: str, payload: dict) -> None:
        self.events.append((event_name, payload))

    def names(self) -> list[str]:
        return [name for name, _payload in self.events]


class InMemoryAppointmentStore:
    """Appointment store over a plain list, for engine tests without a database."""

    def __init__(self, appointments=None) -> None:
        self.appointments = list(appointments or [])

    def get(self, appointment_id):
        return next((item for item in self.appointments if item.id == appointment_id), None)

    def blocking_on(self, appointment_date, resource, exclude_appointment_id=None):
        return [
            item
            for item in self.appointments
            if item.appointment_date == appointment_date
            and item.status in BLOCKING_STATUSES
            and (resource is ANY_RESOURCE or item.assigned_to == resource)
            and (exclude_appointment_id is None or item.id != exclude_appointment_id)
        ]

    def add(self, appointment) -> None:
        self.appointments.append(appointment)

    def delete(self, appointment) -> None:
        self.appointments.remove(appointment)


def make_appointment(
    start: str,
    duration: int = 60,
    *,
    appointment_id: int | None = None,
    assigned_to: int | None = MECHANIC_ID,
    status: str = 'scheduled',
    appointment_date: date = BOOKING_DATE,
) -> Appointment:
    hours, minutes = (int(part) for part in start.split(':'))
    return Appointment(
        id=appointment_id,
        client_id=1,
        vehicle_id=1,
        appointment_date=appointment_date,
        appointment_time=time(hours, minutes),
        estimated_duration=duration,
        assigned_to=assigned_to,
        status=status,
        priority='normal',
    )


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def seed_reference_data(session) -> None:
    session.add_all([
        Client(id=1, first_name='Ana', last_name='Silva', email='ana@example.com'),
        Client(id=2, first_name='Ben', last_name='Okafor', email='ben@example.com'),
        User(id=MECHANIC_ID, email='mech1@shop.test', first_name='Mia', last_name='Lopez', role='mechanic'),
        User(id=OTHER_MECHANIC_ID, email='mech2@shop.test', first_name='Raj', last_name='Patel', role='mechanic'),
        User(id=RECEPTIONIST_ID, email='desk@shop.test', first_name='Kim', last_name='Lee', role='receptionist'),
        Service(id=1, name='Brake inspection', category='brakes', estimated_duration=90),
        Service(id=2, name='Diagnostics', category='engine', estimated_duration=None),
    ])
    session.flush()
    session.add_all([
        Vehicle(id=1, client_id=1, make='Toyota', model='Corolla', year=2018),
        Vehicle(id=2, client_id=2, make='Ford', model='Focus', year=2015),
    ])
    session.commit()


@pytest.fixture
def seeded_db(db):
    seed_reference_data(db)
    return db


@pytest.fixture
def events() -> RecordingEventLog:
    return RecordingEventLog()


@pytest.fixture
def scheduler(seeded_db, events) -> AppointmentScheduler:
    return AppointmentScheduler(
        seeded_db,
        events=events,
        policy=SchedulingPolicy(),
        clock=lambda: FIXED_NOW,
    )
