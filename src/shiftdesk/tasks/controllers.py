"""Controllers for task ledger CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from shiftdesk.config import Settings
from shiftdesk.storage.common import utc_now
from shiftdesk.tasks.cleanup import CleanupSweeper
from shiftdesk.tasks.models import TaskStatus, TaskView
from shiftdesk.tasks.repository import TaskRepository


@dataclass(slots=True)
class TaskShowCommand:
    """CLI input for one task snapshot."""

    db_path: Path | None
    task_id: str


@dataclass(slots=True)
class TaskListCommand:
    """CLI input for task listing."""

    db_path: Path | None
    status: str | None
    requester_id: int | None
    limit: int


@dataclass(slots=True)
class TaskStaleCommand:
    """CLI input for the stranded IN_PROGRESS report."""

    db_path: Path | None
    older_than_minutes: int
    limit: int


@dataclass(slots=True)
class TaskSweepCommand:
    """CLI input for a manual cleanup pass."""

    db_path: Path | None


class TaskCliController:
    """Application controller for ``shiftdesk tasks`` commands."""

    def show(self, command: TaskShowCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            task = repository.get(command.task_id)
        if task is None:
            return [f"Task not found: {command.task_id}"]
        return [
            f"Task: {task.task_id}",
            f"Type: {task.task_type}",
            f"Status: {task.status.value}",
            f"Requester: {task.requester_id}",
            f"Progress: {task.progress}%",
            f"Started: {_iso(task.started_at)}",
            f"Completed: {_iso(task.completed_at)}",
            f"Expires: {_iso(task.expires_at)}",
            f"Error: {task.error_message or '-'}",
            f"Result stored: {'yes' if task.result_data is not None else 'no'}",
        ]

    def list_tasks(self, command: TaskListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        status_filter = _parse_status(command.status)
        with _repository(settings) as repository:
            if command.requester_id is not None:
                tasks = repository.list_by_requester(
                    requester_id=command.requester_id,
                    status=status_filter,
                    limit=command.limit,
                )
            else:
                tasks = repository.list_tasks(status=status_filter, limit=command.limit)

        lines = [f"Tasks: {len(tasks)}"]
        lines.extend(_task_line(task) for task in tasks)
        return lines

    def stale(self, command: TaskStaleCommand) -> list[str]:
        """List IN_PROGRESS tasks older than the cutoff; nothing reclaims them automatically."""

        settings = Settings.from_env(db_path=command.db_path)
        cutoff = utc_now() - timedelta(minutes=max(1, command.older_than_minutes))
        with _repository(settings) as repository:
            tasks = repository.list_stale(
                status=TaskStatus.IN_PROGRESS,
                created_before=cutoff,
                limit=command.limit,
            )

        lines = [f"Stale IN_PROGRESS tasks (created before {cutoff.isoformat()}): {len(tasks)}"]
        lines.extend(_task_line(task) for task in tasks)
        return lines

    def sweep(self, command: TaskSweepCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            deleted = CleanupSweeper(repository=repository).sweep()
        return [f"Expired tasks deleted: {deleted}"]


def _task_line(task: TaskView) -> str:
    return (
        f"  {task.task_id} type={task.task_type} status={task.status.value} "
        f"requester={task.requester_id} progress={task.progress} "
        f"created_at={_iso(task.created_at)}"
    )


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value is not None else "-"


def _parse_status(value: str | None) -> TaskStatus | None:
    if value is None:
        return None
    try:
        return TaskStatus(value.strip().upper())
    except ValueError as error:
        raise ValueError(f"Unsupported task status: {value!r}") from error


@contextmanager
def _repository(settings: Settings) -> Iterator[TaskRepository]:
    repository = TaskRepository(
        settings.db_path,
        pool_size=settings.database.pool_size,
        sqlite_busy_timeout_ms=settings.database.busy_timeout_ms,
    )
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()
