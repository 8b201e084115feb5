"""Fire-and-forget execution of business operations tracked in the task ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Any

from sqlmodel import Session

from shiftdesk.tasks.models import AcceptedTask, TaskStatus
from shiftdesk.tasks.services import TaskService

logger = logging.getLogger(__name__)

START_PROGRESS = 10
FINALIZE_PROGRESS = 90


@dataclass(slots=True, frozen=True)
class AsyncOperation:
    """One asynchronous business operation.

    ``handler`` is the synchronous operation. It receives the worker's own
    session as first argument and returns the object stored as task result.
    """

    task_type: str
    handler: Callable[..., Any]


class AsyncWorkRunner:
    """Admits a task, then runs the operation on the database-bound pool.

    The admission transaction (task insert) is committed before the work is
    handed off. The worker opens a fresh session for the business operation,
    so a failure there can only roll back its own changes, never the task row.
    """

    def __init__(
        self,
        *,
        task_service: TaskService,
        executor: Executor,
        session_factory: Callable[[], Session],
    ) -> None:
        self.task_service = task_service
        self.executor = executor
        self._session_factory = session_factory

    def start(
        self,
        operation: AsyncOperation,
        *,
        requester_id: int,
        request_payload: Any,
        **params: Any,
    ) -> AcceptedTask:
        """Create the task record and submit the work; returns without waiting."""

        task_id = self.task_service.create_task(operation.task_type, requester_id, request_payload)
        self.submit(task_id, operation, **params)
        return AcceptedTask(task_id=task_id, task_type=operation.task_type)

    def submit(self, task_id: str, operation: AsyncOperation, **params: Any) -> Future[None]:
        """Hand an already-committed task to the pool."""

        return self.executor.submit(self._execute, task_id, operation, params)

    def _execute(self, task_id: str, operation: AsyncOperation, params: dict[str, Any]) -> None:
        logger.info("Starting async %s. task_id=%s", operation.task_type, task_id)
        try:
            self.task_service.update_progress(task_id, START_PROGRESS)
            with self._session_factory() as session:
                result = operation.handler(session, **params)
                session.commit()
            self.task_service.update_progress(task_id, FINALIZE_PROGRESS)
            self.task_service.update_status(task_id, TaskStatus.COMPLETED, result)
        except Exception as error:
            logger.exception("Async %s failed. task_id=%s", operation.task_type, task_id)
            self._record_failure(task_id, error)
            return
        logger.info("Async %s completed. task_id=%s", operation.task_type, task_id)

    def _record_failure(self, task_id: str, error: Exception) -> None:
        # Two separate writes: a crash in between leaves FAILED without a message.
        try:
            self.task_service.update_status(task_id, TaskStatus.FAILED)
            self.task_service.set_error(task_id, str(error) or type(error).__name__)
        except Exception:
            logger.exception("Failed to record task failure. task_id=%s", task_id)
