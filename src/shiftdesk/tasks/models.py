"""Domain models for the asynchronous task ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle states.

    ``CANCELLED`` is a valid terminal state that nothing in the system currently
    produces; it is accepted by status updates and ignored by the sweeper.
    """

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not TaskStatus.IN_PROGRESS


TERMINAL_STATUSES = frozenset(
    {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED},
)
SWEEPABLE_STATUSES = (TaskStatus.COMPLETED, TaskStatus.FAILED)

STORE_CREATE = "STORE_CREATE"
SCHEDULE_UPDATE = "SCHEDULE_UPDATE"


@dataclass(slots=True)
class TaskView:
    """Full task record as read from or written to the ledger."""

    task_id: str
    status: TaskStatus
    task_type: str
    requester_id: int
    request_data: str | None
    result_data: str | None
    error_message: str | None
    progress: int
    started_at: datetime | None
    completed_at: datetime | None
    expires_at: datetime | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class AcceptedTask:
    """Admission acknowledgement returned to the caller of an async operation."""

    task_id: str
    task_type: str
    status: TaskStatus = TaskStatus.IN_PROGRESS
    progress: int = 0
