"""Background timer that runs sentinel cycles at a fixed frequency."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from common.datetime import utc_now
from sentinel.errors import RunInProgressError
from sentinel.models import RunConfig
from sentinel.sentinel import SentinelService

logger = logging.getLogger(__name__)


class SentinelScheduler:
    """Runs ``service.run_once(trigger="scheduled")`` every ``frequency_seconds``."""

    def __init__(self, service: SentinelService, frequency_seconds: Optional[float] = None):
        self.service = service
        self.frequency_seconds = frequency_seconds or service.config.frequency_seconds
        self.next_run_at: Optional[datetime] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self.next_run_at = utc_now() + timedelta(seconds=self.frequency_seconds)
        self._thread = threading.Thread(target=self._loop, name="sentinel-scheduler", daemon=True)
        self._thread.start()
        logger.info("Sentinel scheduler started, interval %ss", self.frequency_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        self.service.request_stop()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        self.next_run_at = None
        logger.info("Sentinel scheduler stopped")

    def tick(self) -> None:
        """Run one scheduled cycle, skipping if a cycle is already active."""
        try:
            self.service.run_once(RunConfig(trigger="scheduled"))
        except RunInProgressError:
            logger.info("Scheduled run skipped: a run is already in progress")
        except Exception:
            # A failing cycle must not kill the timer thread
            logger.exception("Scheduled sentinel run failed")

    def _loop(self) -> None:
        while not self._stop.wait(self.frequency_seconds):
            self.tick()
            self.next_run_at = utc_now() + timedelta(seconds=self.frequency_seconds)
