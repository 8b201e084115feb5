"""Polling endpoints over the task ledger."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from shiftdesk.api.deps import current_owner_id, get_task_service
from shiftdesk.api.schemas import ApiResponse, TaskStatusResponse
from shiftdesk.tasks.models import TaskStatus
from shiftdesk.tasks.services import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.get(
    "",
    response_model=ApiResponse[list[TaskStatusResponse]],
    response_model_exclude_none=True,
)
def list_tasks(
    owner_id: Annotated[int, Depends(current_owner_id)],
    service: Annotated[TaskService, Depends(get_task_service)],
    status: TaskStatus | None = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> ApiResponse[Any]:
    tasks = service.list_requester_tasks(owner_id, status=status, limit=limit)
    return ApiResponse.success(
        "Tasks retrieved",
        [TaskStatusResponse.from_view(task) for task in tasks],
    )


@router.get(
    "/{task_id}",
    response_model=ApiResponse[TaskStatusResponse],
    response_model_exclude_none=True,
)
def get_task_status(
    task_id: str,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> ApiResponse[Any]:
    logger.debug("Get task status request. task_id=%s", task_id)
    task = service.get_status(task_id)
    return ApiResponse.success("Task status retrieved", TaskStatusResponse.from_view(task))


@router.get("/{task_id}/result", response_model=ApiResponse[Any])
def get_task_result(
    task_id: str,
    service: Annotated[TaskService, Depends(get_task_service)],
) -> ApiResponse[Any]:
    logger.debug("Get task result request. task_id=%s", task_id)
    return ApiResponse.success("Task result retrieved", service.get_result(task_id))
