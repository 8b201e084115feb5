"""Response envelopes and task DTOs of the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shiftdesk.storage.common import utc_now
from shiftdesk.tasks.models import AcceptedTask, TaskStatus, TaskView

T = TypeVar("T")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(_CamelModel, Generic[T]):
    """Success envelope: ``{status, message, data, timestamp}``."""

    status: int = 200
    message: str = "Success"
    data: T | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def success(cls, message: str, data: Any = None) -> ApiResponse[Any]:
        return cls(status=200, message=message, data=data)

    @classmethod
    def created(cls, message: str, data: Any = None) -> ApiResponse[Any]:
        return cls(status=201, message=message, data=data)

    @classmethod
    def accepted(cls, message: str, data: Any = None) -> ApiResponse[Any]:
        return cls(status=202, message=message, data=data)


class FieldErrorItem(_CamelModel):
    field: str
    rejected_value: Any = None
    message: str


class ErrorResponse(_CamelModel):
    """Error envelope: ``{status, error, message, path, timestamp}``."""

    status: int
    error: str
    message: str
    path: str
    timestamp: datetime = Field(default_factory=utc_now)
    field_errors: list[FieldErrorItem] | None = None


class TaskStatusResponse(_CamelModel):
    task_id: str
    status: TaskStatus
    task_type: str
    progress: int
    started_at: datetime | None = None
    completed_at: datetime | None = None
    expires_at: datetime | None = None
    error_message: str | None = None

    @classmethod
    def from_view(cls, task: TaskView) -> TaskStatusResponse:
        return cls(
            task_id=task.task_id,
            status=task.status,
            task_type=task.task_type,
            progress=task.progress,
            started_at=task.started_at,
            completed_at=task.completed_at,
            expires_at=task.expires_at,
            error_message=task.error_message,
        )


class AcceptedTaskResponse(_CamelModel):
    task_id: str
    status: TaskStatus
    task_type: str
    progress: int

    @classmethod
    def from_accepted(cls, accepted: AcceptedTask) -> AcceptedTaskResponse:
        return cls(
            task_id=accepted.task_id,
            status=accepted.status,
            task_type=accepted.task_type,
            progress=accepted.progress,
        )
