import os
from datetime import datetime

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./repairshop.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:8080").split(",")
    if origin.strip()
]


WORKING_HOURS_START = os.getenv("WORKING_HOURS_START", "08:00")
WORKING_HOURS_END = os.getenv("WORKING_HOURS_END", "18:00")
SLOT_INCREMENT_MINUTES = _get_int(os.getenv("SLOT_INCREMENT_MINUTES"), 30)

DEFAULT_APPOINTMENT_DURATION_MINUTES = _get_int(os.getenv("DEFAULT_APPOINTMENT_DURATION_MINUTES"), 60)
MIN_APPOINTMENT_DURATION_MINUTES = _get_int(os.getenv("MIN_APPOINTMENT_DURATION_MINUTES"), 15)
MAX_APPOINTMENT_DURATION_MINUTES = _get_int(os.getenv("MAX_APPOINTMENT_DURATION_MINUTES"), 480)

# When true, unassigned appointments compete with each other for the same slot.
UNASSIGNED_IS_SHARED_RESOURCE = _get_bool(os.getenv("UNASSIGNED_IS_SHARED_RESOURCE"), default=True)


def validate_runtime_config() -> None:
    try:
        opening = datetime.strptime(WORKING_HOURS_START, "%H:%M").time()
        closing = datetime.strptime(WORKING_HOURS_END, "%H:%M").time()
    except ValueError as exc:
        raise RuntimeError("WORKING_HOURS_START and WORKING_HOURS_END must use HH:MM.") from exc

    if opening >= closing:
        raise RuntimeError("WORKING_HOURS_START must be earlier than WORKING_HOURS_END.")
    if SLOT_INCREMENT_MINUTES <= 0:
        raise RuntimeError("SLOT_INCREMENT_MINUTES must be positive.")
    if not (
        MIN_APPOINTMENT_DURATION_MINUTES
        <= DEFAULT_APPOINTMENT_DURATION_MINUTES
        <= MAX_APPOINTMENT_DURATION_MINUTES
    ):
        raise RuntimeError("DEFAULT_APPOINTMENT_DURATION_MINUTES must lie within the duration bounds.")
