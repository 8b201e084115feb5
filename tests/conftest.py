"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from shiftdesk.tasks.repository import TaskRepository
from shiftdesk.tasks.services import TaskService


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=UTC))


@pytest.fixture()
def repository(tmp_path: Path) -> Iterator[TaskRepository]:
    repo = TaskRepository(tmp_path / "tasks.db")
    repo.init_schema()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def service(repository: TaskRepository, clock: FakeClock) -> TaskService:
    return TaskService(repository=repository, retention=timedelta(hours=24), clock=clock)
