import logging
import threading
import time
from collections.abc import Callable
from datetime import timedelta

from django.db import close_old_connections

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs ``action`` on a fixed-rate background thread.

    Ticks that come due while the previous run is still going are dropped, not
    queued. The first run happens as soon as the task starts unless
    ``run_immediately`` is false.
    """

    def __init__(
        self,
        name: str,
        interval: timedelta,
        action: Callable[[], object],
        *,
        run_immediately: bool = True,
        stop_event: threading.Event | None = None,
    ) -> None:
        if interval.total_seconds() <= 0:
            raise ValueError(f"{name} interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self.action = action
        self.run_immediately = run_immediately
        self.stop_event = stop_event or threading.Event()
        self._running = threading.Lock()
        self._thread: threading.Thread | None = None
        self.runs = 0
        self.skipped = 0

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def run_now(self) -> bool:
        if not self._running.acquire(blocking=False):
            self.skipped += 1
            logger.info("TASK %s skipped: previous run still in progress", self.name)
            return False
        try:
            self.action()
            self.runs += 1
        except Exception as error:
            logger.exception("TASK %s failed: %s", self.name, error)
        finally:
            self._running.release()
            close_old_connections()
        return True

    def _loop(self) -> None:
        interval_seconds = self.interval.total_seconds()
        next_due = time.monotonic()
        if not self.run_immediately:
            next_due += interval_seconds

        while not self.stop_event.wait(max(0.0, next_due - time.monotonic())):
            self.run_now()
            next_due += interval_seconds
            overdue = time.monotonic() - next_due
            if overdue >= 0:
                missed = int(overdue // interval_seconds) + 1
                self.skipped += missed
                logger.warning("TASK %s overran its interval; skipping %s tick(s)", self.name, missed)
                next_due += missed * interval_seconds
