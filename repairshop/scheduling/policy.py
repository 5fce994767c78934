from dataclasses import dataclass
from datetime import datetime, time

from repairshop.core import config


@dataclass(frozen=True)
class SchedulingPolicy:
    opening_time: time = time(8, 0)
    closing_time: time = time(18, 0)
    slot_increment_minutes: int = 30
    default_duration_minutes: int = 60
    min_duration_minutes: int = 15
    max_duration_minutes: int = 480
    unassigned_is_shared: bool = True

    @classmethod
    def from_config(cls) -> 'SchedulingPolicy':
        return cls(
            opening_time=datetime.strptime(config.WORKING_HOURS_START, '%H:%M').time(),
            closing_time=datetime.strptime(config.WORKING_HOURS_END, '%H:%M').time(),
            slot_increment_minutes=config.SLOT_INCREMENT_MINUTES,
            default_duration_minutes=config.DEFAULT_APPOINTMENT_DURATION_MINUTES,
            min_duration_minutes=config.MIN_APPOINTMENT_DURATION_MINUTES,
            max_duration_minutes=config.MAX_APPOINTMENT_DURATION_MINUTES,
            unassigned_is_shared=config.UNASSIGNED_IS_SHARED_RESOURCE,
        )
