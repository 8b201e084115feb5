"""Error taxonomy of the task core.

Every error carries a stable ``error_code`` and the HTTP status the API maps it to.
"""

from __future__ import annotations

from http import HTTPStatus

from shiftdesk.tasks.models import TaskStatus


class TaskError(Exception):
    """Base class for task core errors."""

    error_code = "TASK_ERROR"
    http_status = HTTPStatus.BAD_REQUEST


class TaskNotFoundError(TaskError, LookupError):
    error_code = "TASK_NOT_FOUND"
    http_status = HTTPStatus.NOT_FOUND

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class InvalidProgressError(TaskError, ValueError):
    error_code = "INVALID_PROGRESS"
    http_status = HTTPStatus.BAD_REQUEST

    def __init__(self, progress: int) -> None:
        super().__init__(f"Progress must be between 0 and 100, got {progress}")
        self.progress = progress


class TaskNotReadyError(TaskError):
    """Result requested for a task that is not COMPLETED (running, failed or cancelled)."""

    error_code = "TASK_NOT_READY"
    http_status = HTTPStatus.BAD_REQUEST

    def __init__(self, task_id: str, status: TaskStatus) -> None:
        super().__init__(f"Task is not completed yet. Current status: {status.value}")
        self.task_id = task_id
        self.status = status


class TaskSerializationError(TaskError, ValueError):
    error_code = "RESULT_UNREADABLE"
    http_status = HTTPStatus.BAD_REQUEST


class TaskCreationError(TaskError, RuntimeError):
    error_code = "TASK_CREATE_FAILED"
    http_status = HTTPStatus.INTERNAL_SERVER_ERROR
