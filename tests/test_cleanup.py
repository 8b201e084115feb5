from __future__ import annotations

import logging
from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import allure
import pytest

from shiftdesk.tasks.cleanup import CleanupSweeper, next_run_after, seconds_until
from shiftdesk.tasks.models import TaskStatus
from shiftdesk.tasks.repository import TaskRepository
from shiftdesk.tasks.services import TaskService

pytestmark = [
    allure.epic("Async Tasks"),
    allure.feature("Expired Task Cleanup"),
]


def test_next_run_after_same_day_when_time_is_ahead() -> None:
    now = datetime(2026, 3, 1, 1, 30, tzinfo=UTC)

    assert next_run_after(now, time(2, 0)) == datetime(2026, 3, 1, 2, 0, tzinfo=UTC)


def test_next_run_after_rolls_to_next_day_at_or_past_the_time() -> None:
    exactly = datetime(2026, 3, 1, 2, 0, tzinfo=UTC)
    later = datetime(2026, 3, 1, 14, 15, tzinfo=UTC)

    assert next_run_after(exactly, time(2, 0)) == datetime(2026, 3, 2, 2, 0, tzinfo=UTC)
    assert next_run_after(later, time(2, 0)) == datetime(2026, 3, 2, 2, 0, tzinfo=UTC)


@pytest.fixture()
def berlin() -> ZoneInfo:
    try:
        return ZoneInfo("Europe/Berlin")
    except ZoneInfoNotFoundError:
        pytest.skip("tz database is not available")


def test_next_run_keeps_wall_clock_time_across_dst_start(berlin: ZoneInfo) -> None:
    # Europe/Berlin switches to summer time on 2026-03-29.
    now = datetime(2026, 3, 28, 5, 0, tzinfo=berlin)

    target = next_run_after(now, time(4, 0))

    assert (target.hour, target.minute) == (4, 0)
    assert target.utcoffset() == timedelta(hours=2)
    assert seconds_until(now, target) == 22 * 3600


def test_next_run_keeps_wall_clock_time_across_dst_end(berlin: ZoneInfo) -> None:
    now = datetime(2026, 10, 24, 5, 0, tzinfo=berlin)

    target = next_run_after(now, time(4, 0))

    assert target.utcoffset() == timedelta(hours=1)
    assert seconds_until(now, target) == 24 * 3600


def test_seconds_until_between_utc_instants() -> None:
    now = datetime(2026, 3, 1, 1, 30, tzinfo=UTC)

    assert seconds_until(now, datetime(2026, 3, 1, 2, 0, tzinfo=UTC)) == 1800


def test_sweep_deletes_only_expired_completed_and_failed(
    service: TaskService,
    repository: TaskRepository,
    clock,
) -> None:
    completed = service.create_task("STORE_CREATE", 7, None)
    service.update_status(completed, TaskStatus.COMPLETED, {"id": 1})
    failed = service.create_task("STORE_CREATE", 7, None)
    service.set_error(failed, "boom")
    running = service.create_task("SCHEDULE_UPDATE", 7, None)
    cancelled = service.create_task("SCHEDULE_UPDATE", 7, None)
    service.update_status(cancelled, TaskStatus.CANCELLED)
    clock.advance(timedelta(hours=12))
    fresh = service.create_task("STORE_CREATE", 7, None)
    service.update_status(fresh, TaskStatus.COMPLETED)

    sweeper = CleanupSweeper(repository=repository, clock=clock)
    deleted = sweeper.sweep(clock.now + timedelta(hours=13))

    assert deleted == 2
    assert repository.get(completed) is None
    assert repository.get(failed) is None
    assert repository.get(running) is not None
    assert repository.get(cancelled) is not None
    assert repository.get(fresh) is not None


def test_sweep_uses_clock_when_no_cutoff_given(
    service: TaskService,
    repository: TaskRepository,
    clock,
) -> None:
    task_id = service.create_task("STORE_CREATE", 7, None)
    service.update_status(task_id, TaskStatus.COMPLETED)
    sweeper = CleanupSweeper(repository=repository, clock=clock)

    assert sweeper.sweep() == 0
    clock.advance(timedelta(hours=24, seconds=1))
    assert sweeper.sweep() == 1


def test_run_once_logs_failures_and_keeps_going(
    repository: TaskRepository,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def broken_delete(now: datetime) -> int:
        raise RuntimeError("database is locked")

    repository.delete_expired = broken_delete  # type: ignore[method-assign]
    sweeper = CleanupSweeper(repository=repository)

    with caplog.at_level(logging.ERROR, logger="shiftdesk.tasks.cleanup"):
        assert sweeper.run_once() is None

    assert "Failed to cleanup expired tasks" in caplog.text


def test_start_and_stop_background_thread(repository: TaskRepository) -> None:
    sweeper = CleanupSweeper(repository=repository, run_at=time(2, 0))

    sweeper.start()
    sweeper.start()
    assert sweeper._thread is not None
    assert sweeper._thread.name == "task-cleanup"

    sweeper.stop(timeout=2)
    assert sweeper._thread is None
