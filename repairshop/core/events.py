import json
import logging
from datetime import datetime, timezone
from typing import Protocol

logger = logging.getLogger('repairshop.events')


class EventLog(Protocol):
    def record(self, event_name: str, payload: dict) -> None: ...


class LoggingEventLog:
    """Append-only business event log written through the standard logger."""

    def __init__(self, event_logger: logging.Logger | None = None) -> None:
        self.logger = event_logger or logger

    def record(self, event_name: str, payload: dict) -> None:
        entry = {'timestamp': datetime.now(timezone.utc).isoformat(), **payload}
        self.logger.info('Business: %s %s', event_name, json.dumps(entry, default=str, sort_keys=True))
