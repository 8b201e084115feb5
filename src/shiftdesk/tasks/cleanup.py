"""Daily purge of expired terminal tasks."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, time, timedelta

from shiftdesk.storage.common import utc_now
from shiftdesk.tasks.repository import TaskRepository

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_TIME = time(hour=2)


def _local_now() -> datetime:
    return datetime.now()


def next_run_after(now: datetime, run_at: time) -> datetime:
    """Next wall-clock time matching ``run_at`` strictly after ``now``.

    ``now`` is naive local time or carries a zone-aware tzinfo (``ZoneInfo``);
    a fixed-offset tzinfo would keep the offset across a DST change.
    """

    candidate = now.replace(
        hour=run_at.hour,
        minute=run_at.minute,
        second=0,
        microsecond=0,
    )
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def seconds_until(now: datetime, target: datetime) -> float:
    """Elapsed seconds from ``now`` to ``target``, measured in UTC.

    Naive values are read as system local time, so the delay spans DST
    changes correctly.
    """

    return (target.astimezone(UTC) - now.astimezone(UTC)).total_seconds()


class CleanupSweeper:
    """Deletes COMPLETED/FAILED tasks past their expiry once per day.

    IN_PROGRESS rows are never reclaimed, however old; CANCELLED rows are left
    alone as well.
    """

    def __init__(
        self,
        *,
        repository: TaskRepository,
        run_at: time = DEFAULT_CLEANUP_TIME,
        clock: Callable[[], datetime] = utc_now,
        local_clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.repository = repository
        self.run_at = run_at
        self._clock = clock
        self._local_clock = local_clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def sweep(self, now: datetime | None = None) -> int:
        """Run one purge pass and return the number of deleted tasks."""

        cutoff = now or self._clock()
        deleted = self.repository.delete_expired(cutoff)
        logger.info("Expired async tasks cleaned up at %s: deleted=%d", cutoff.isoformat(), deleted)
        return deleted

    def run_once(self) -> int | None:
        """Scheduled entry point: a failing pass is logged and does not stop the schedule."""

        try:
            return self.sweep()
        except Exception:
            logger.exception("Failed to cleanup expired tasks")
            return None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name="task-cleanup",
        )
        self._thread.start()
        logger.info("Task cleanup scheduled daily at %s", self.run_at.strftime("%H:%M"))

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Task cleanup stopped")

    def _loop(self) -> None:
        target = next_run_after(self._local_clock(), self.run_at)
        while True:
            delay = seconds_until(self._local_clock(), target)
            if self._stop.wait(timeout=max(0.0, delay)):
                return
            self.run_once()
            # Anchored on the fired target so an early wake-up cannot fire twice.
            target = next_run_after(max(self._local_clock(), target), self.run_at)
