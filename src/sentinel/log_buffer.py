"""In-memory buffer of recent sentinel log records for the admin surface."""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone

MAX_ENTRIES = 200


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    level: str
    logger: str
    message: str


class RunLogBuffer(logging.Handler):
    """Logging handler that keeps the last ``capacity`` formatted records."""

    def __init__(self, capacity: int = MAX_ENTRIES, level: int = logging.INFO):
        super().__init__(level)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._entries_lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
            )
        except Exception:
            self.handleError(record)
            return
        with self._entries_lock:
            self._entries.append(entry)

    def entries(self, limit: int | None = None) -> list[LogEntry]:
        """Most recent entries, oldest first."""
        with self._entries_lock:
            items = list(self._entries)
        return items[-limit:] if limit else items

    def clear(self) -> None:
        with self._entries_lock:
            self._entries.clear()


_buffer: RunLogBuffer | None = None
_install_lock = threading.Lock()


def install_log_buffer(logger_names: tuple[str, ...] = ("sentinel", "ingest_articles")) -> RunLogBuffer:
    """Attach one shared buffer to the given loggers (idempotent)."""
    global _buffer
    with _install_lock:
        if _buffer is None:
            _buffer = RunLogBuffer()
            for name in logger_names:
                target = logging.getLogger(name)
                if target.level == logging.NOTSET:
                    target.setLevel(logging.INFO)
                target.addHandler(_buffer)
        return _buffer
