from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import allure
from click.testing import CliRunner

from shiftdesk import __version__
from shiftdesk.main import shiftdesk
from shiftdesk.storage.common import utc_now
from shiftdesk.tasks.models import TaskStatus
from shiftdesk.tasks.repository import TaskRepository
from shiftdesk.tasks.services import TaskService

pytestmark = [
    allure.epic("Async Tasks"),
    allure.feature("Operator CLI"),
]


def _seed(db_path: Path) -> dict[str, str]:
    repository = TaskRepository(db_path)
    repository.init_schema()
    try:
        now = utc_now()
        old = TaskService(repository=repository, clock=lambda: now - timedelta(days=3))
        fresh = TaskService(repository=repository, clock=lambda: now)
        expired = old.create_task("STORE_CREATE", 7, {"name": "Cafe"})
        old.update_status(expired, TaskStatus.COMPLETED, {"id": 1})
        stuck = old.create_task("SCHEDULE_UPDATE", 7, None)
        running = fresh.create_task("STORE_CREATE", 8, None)
        failed = fresh.create_task("SCHEDULE_UPDATE", 8, None)
        fresh.set_error(failed, "Schedule not found: 3")
    finally:
        repository.close()
    return {"expired": expired, "stuck": stuck, "running": running, "failed": failed}


def test_version_option() -> None:
    result = CliRunner().invoke(shiftdesk, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_tasks_show_prints_snapshot(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"
    ids = _seed(db_path)

    result = CliRunner().invoke(
        shiftdesk,
        ["tasks", "show", "--db-path", str(db_path), "--task-id", ids["failed"]],
    )

    assert result.exit_code == 0, result.output
    assert f"Task: {ids['failed']}" in result.output
    assert "Status: FAILED" in result.output
    assert "Error: Schedule not found: 3" in result.output
    assert "Result stored: no" in result.output


def test_tasks_show_unknown_task(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        shiftdesk,
        ["tasks", "show", "--db-path", str(tmp_path / "cli.db"), "--task-id", "nope"],
    )

    assert result.exit_code == 0
    assert "Task not found: nope" in result.output


def test_tasks_list_filters_by_requester_and_status(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"
    ids = _seed(db_path)
    runner = CliRunner()

    by_requester = runner.invoke(
        shiftdesk,
        ["tasks", "list", "--db-path", str(db_path), "--requester-id", "8"],
    )
    by_status = runner.invoke(
        shiftdesk,
        ["tasks", "list", "--db-path", str(db_path), "--status", "completed"],
    )

    assert by_requester.exit_code == 0, by_requester.output
    assert "Tasks: 2" in by_requester.output
    assert ids["running"] in by_requester.output
    assert ids["failed"] in by_requester.output
    assert by_status.exit_code == 0, by_status.output
    assert "Tasks: 1" in by_status.output
    assert ids["expired"] in by_status.output


def test_tasks_stale_reports_old_in_progress_tasks(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"
    ids = _seed(db_path)

    result = CliRunner().invoke(
        shiftdesk,
        ["tasks", "stale", "--db-path", str(db_path), "--older-than-minutes", "60"],
    )

    assert result.exit_code == 0, result.output
    assert "Stale IN_PROGRESS tasks" in result.output
    assert ids["stuck"] in result.output
    assert ids["running"] not in result.output


def test_tasks_sweep_deletes_expired_terminal_tasks(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"
    ids = _seed(db_path)

    result = CliRunner().invoke(shiftdesk, ["tasks", "sweep", "--db-path", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "Expired tasks deleted: 1" in result.output
    repository = TaskRepository(db_path)
    try:
        assert repository.get(ids["expired"]) is None
        assert repository.get(ids["stuck"]) is not None
    finally:
        repository.close()
