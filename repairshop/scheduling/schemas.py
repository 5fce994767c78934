from datetime import date, datetime, time

from pydantic import BaseModel, field_serializer, field_validator

MAX_APPOINTMENT_NOTES_LENGTH = 2000

# Patch fields that may be cleared by sending null.
NULLABLE_PATCH_FIELDS = frozenset({'service_id', 'assigned_to', 'notes'})


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class AppointmentFields(BaseModel):
    client_id: int | None = None
    vehicle_id: int | None = None
    service_id: int | None = None
    appointment_date: str | None = None
    appointment_time: str | None = None
    estimated_duration: int | None = None
    assigned_to: int | None = None
    status: str | None = None
    priority: str | None = None
    notes: str | None = None

    @field_validator('appointment_date', 'appointment_time')
    @classmethod
    def strip_temporal_fields(cls, value: str | None) -> str | None:
        return _normalize_text(value)

    @field_validator('status', 'priority')
    @classmethod
    def normalize_choice(cls, value: str | None) -> str | None:
        normalized = _normalize_text(value)
        return normalized.lower() if normalized else None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        normalized = _normalize_text(value)
        if normalized and len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')
        return normalized


class AppointmentDraft(AppointmentFields):
    """Input for booking a new appointment."""


class AppointmentPatch(AppointmentFields):
    """Partial update; only fields the caller actually sent are applied."""

    def changes(self) -> dict:
        values = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name not in NULLABLE_PATCH_FIELDS:
                continue
            values[name] = value
        return values


class StatusUpdateRequest(BaseModel):
    status: str | None = None
    notes: str | None = None

    @field_validator('status')
    @classmethod
    def normalize_status(cls, value: str | None) -> str | None:
        normalized = _normalize_text(value)
        return normalized.lower() if normalized else None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        normalized = _normalize_text(value)
        if normalized and len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')
        return normalized


class AppointmentResponse(BaseModel):
    id: int
    client_id: int
    vehicle_id: int
    service_id: int | None = None
    assigned_to: int | None = None
    appointment_date: date
    appointment_time: time
    estimated_duration: int
    status: str
    priority: str
    notes: str | None = None
    internal_notes: str | None = None
    actual_end_time: datetime | None = None

    class Config:
        from_attributes = True

    @field_serializer('appointment_time')
    def serialize_appointment_time(self, value: time) -> str:
        return value.strftime('%H:%M')


class WorkingHoursResponse(BaseModel):
    start: str
    end: str


class SlotAvailabilityResponse(BaseModel):
    date: date
    slots: list[str]
    duration_minutes: int
    working_hours: WorkingHoursResponse

    class Config:
        from_attributes = True
