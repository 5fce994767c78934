from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from repairshop.database import SessionLocal, ensure_appointment_schema
from repairshop.scheduling.errors import (
    ConflictError,
    NotFoundError,
    SchedulingError,
    StateError,
    ValidationError,
)
from repairshop.scheduling.schemas import (
    AppointmentDraft,
    AppointmentPatch,
    AppointmentResponse,
    SlotAvailabilityResponse,
    StatusUpdateRequest,
)
from repairshop.scheduling.service import AppointmentScheduler
from repairshop.scheduling.stores import ANY_RESOURCE

router = APIRouter(tags=['appointments'])

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_scheduler(db: Session) -> AppointmentScheduler:
    return AppointmentScheduler(db)


def to_http_exception(exc: SchedulingError) -> HTTPException:
    if isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StateError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    return HTTPException(status_code=status_code, detail=exc.to_detail())


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: AppointmentDraft, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return get_scheduler(db).create_appointment(data)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/available-slots', response_model=SlotAvailabilityResponse)
def list_available_slots(
    date: str = Query(...),
    duration: int = Query(default=60),
    assigned_to: int | None = Query(default=None),
    unassigned: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    if assigned_to is not None:
        resource = assigned_to
    elif unassigned:
        resource = None
    else:
        resource = ANY_RESOURCE

    try:
        availability = get_scheduler(db).available_slots(date, duration, resource)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return SlotAvailabilityResponse(
        date=availability.date,
        slots=availability.slots,
        duration_minutes=availability.duration_minutes,
        working_hours=availability.working_hours,
    )


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return get_scheduler(db).get_appointment(appointment_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(appointment_id: int, data: AppointmentPatch, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return get_scheduler(db).update_appointment(appointment_id, data)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(appointment_id: int, data: StatusUpdateRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return get_scheduler(db).set_status(appointment_id, data.status, data.notes)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        get_scheduler(db).delete_appointment(appointment_id)
    except SchedulingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)
