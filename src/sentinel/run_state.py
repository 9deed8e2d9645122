"""Single-slot holder of the current run summary."""

import threading
from dataclasses import replace
from typing import Callable

from sentinel.models import RunSummary


class RunStateCell:
    """Owns the process-wide ``RunSummary``.

    Writers replace the whole value under a lock; readers get the current
    frozen instance, so no caller ever holds a live, mutating reference.
    """

    def __init__(self, initial: RunSummary | None = None):
        self._lock = threading.Lock()
        self._summary = initial or RunSummary()

    def publish(self, summary: RunSummary) -> None:
        with self._lock:
            self._summary = summary

    def update(self, **changes) -> RunSummary:
        with self._lock:
            self._summary = replace(self._summary, **changes)
            return self._summary

    def modify(self, fn: Callable[[RunSummary], RunSummary]) -> RunSummary:
        """Replace the summary with ``fn(current)`` atomically."""
        with self._lock:
            self._summary = fn(self._summary)
            return self._summary

    def increment(self, counter: str, amount: int = 1) -> RunSummary:
        with self._lock:
            value = getattr(self._summary, counter) + amount
            self._summary = replace(self._summary, **{counter: value})
            return self._summary

    def snapshot(self) -> RunSummary:
        with self._lock:
            return replace(self._summary)
