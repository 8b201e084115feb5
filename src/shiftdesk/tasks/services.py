"""Use-case services over the task ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from shiftdesk.storage.common import utc_now
from shiftdesk.storage.sqlmodel_models import ERROR_MESSAGE_MAX_LENGTH
from shiftdesk.tasks.codec import dumps_payload, loads_payload
from shiftdesk.tasks.errors import (
    InvalidProgressError,
    TaskCreationError,
    TaskNotReadyError,
    TaskSerializationError,
)
from shiftdesk.tasks.models import TaskStatus, TaskView
from shiftdesk.tasks.repository import TaskRepository

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)


class TaskService:
    """Create, advance, finalize and read task records.

    Each call is one short ledger transaction, so checkpoints written by a
    worker become visible to polling clients as soon as the call returns.
    """

    def __init__(
        self,
        *,
        repository: TaskRepository,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.retention = retention
        self._clock = clock

    def create_task(self, task_type: str, requester_id: int, request_payload: Any) -> str:
        """Insert an IN_PROGRESS task and return its id.

        Expiry is fixed here, relative to creation, not to completion.
        """

        task_id = str(uuid4())
        try:
            request_data = dumps_payload(request_payload) if request_payload is not None else None
            now = self._clock()
            self.repository.insert(
                TaskView(
                    task_id=task_id,
                    status=TaskStatus.IN_PROGRESS,
                    task_type=task_type,
                    requester_id=requester_id,
                    request_data=request_data,
                    result_data=None,
                    error_message=None,
                    progress=0,
                    started_at=now,
                    completed_at=None,
                    expires_at=now + self.retention,
                    created_at=now,
                ),
            )
        except Exception as error:
            logger.exception(
                "Failed to create async task. task_type=%s requester_id=%s",
                task_type,
                requester_id,
            )
            raise TaskCreationError("Failed to create async task") from error

        logger.info(
            "Async task created. task_id=%s task_type=%s requester_id=%s",
            task_id,
            task_type,
            requester_id,
        )
        return task_id

    def update_progress(self, task_id: str, percent: int) -> None:
        """Overwrite progress; values outside [0, 100] are rejected."""

        task = self.repository.find_by_id(task_id)
        if percent < 0 or percent > 100:  # noqa: PLR2004
            raise InvalidProgressError(percent)
        self.repository.save(replace(task, progress=percent))
        logger.debug("Task progress updated. task_id=%s progress=%s", task_id, percent)

    def update_status(self, task_id: str, status: TaskStatus, result: Any = None) -> None:
        """Set status, stamp completion for terminal states and store the result.

        A result that cannot be serialized is logged and dropped; the status
        update still goes through.
        """

        task = self.repository.find_by_id(task_id)
        updated = replace(
            task,
            status=status,
            completed_at=self._clock() if status.is_terminal else None,
        )
        if result is not None:
            try:
                updated.result_data = dumps_payload(result)
            except TaskSerializationError:
                logger.exception("Failed to serialize result data. task_id=%s", task_id)
        self.repository.save(updated)
        logger.debug("Task status updated. task_id=%s status=%s", task_id, status.value)

    def set_error(self, task_id: str, message: str | None) -> None:
        """Force FAILED with an error message, regardless of the current status."""

        task = self.repository.find_by_id(task_id)
        error_message = message[:ERROR_MESSAGE_MAX_LENGTH] if message is not None else None
        self.repository.save(
            replace(
                task,
                status=TaskStatus.FAILED,
                completed_at=self._clock(),
                error_message=error_message,
            ),
        )
        logger.warning("Task failed. task_id=%s error=%s", task_id, error_message)

    def get_status(self, task_id: str) -> TaskView:
        """Status snapshot of one task."""

        return self.repository.find_by_id(task_id)

    def get_task(self, task_id: str) -> TaskView:
        """Full task record, payloads included."""

        return self.repository.find_by_id(task_id)

    def get_result(self, task_id: str) -> Any:
        """Deserialized result of a COMPLETED task.

        Any other status, FAILED and CANCELLED included, raises the same
        TaskNotReadyError.
        """

        task = self.repository.find_by_id(task_id)
        if task.status is not TaskStatus.COMPLETED:
            raise TaskNotReadyError(task_id, task.status)
        if task.result_data is None:
            return None
        try:
            return loads_payload(task.result_data)
        except TaskSerializationError:
            logger.exception("Failed to deserialize task result. task_id=%s", task_id)
            raise

    def list_requester_tasks(
        self,
        requester_id: int,
        *,
        status: TaskStatus | None = None,
        limit: int = 50,
    ) -> list[TaskView]:
        return self.repository.list_by_requester(
            requester_id=requester_id,
            status=status,
            limit=limit,
        )
