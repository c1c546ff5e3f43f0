from __future__ import annotations
import logging
from collections import deque
from typing import Deque, List, Tuple

EVENT_FORMAT = "%(asctime)s %(message)s"
EVENT_DATEFMT = "%H:%M:%S"


class EventLog(logging.Handler):
    """Keeps the most recent log records for the events panel, newest first."""

    def __init__(self, limit: int = 200, level: int = logging.INFO):
        super().__init__(level)
        self.records: Deque[Tuple[str, str]] = deque(maxlen=limit)
        self.setFormatter(logging.Formatter(EVENT_FORMAT, EVENT_DATEFMT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.records.appendleft((record.levelname, self.format(record)))
        except Exception:
            self.handleError(record)

    def entries(self) -> List[Tuple[str, str]]:
        return list(self.records)
