"""Schedule update endpoints: synchronous and task-backed variants."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from shiftdesk.api.deps import current_owner_id, get_container, get_schedule_operations
from shiftdesk.api.schemas import AcceptedTaskResponse, ApiResponse
from shiftdesk.container import AppContainer
from shiftdesk.operations.async_operations import schedule_update_operation
from shiftdesk.operations.ports import ScheduleOperations
from shiftdesk.operations.requests import ScheduleUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/schedules", tags=["schedules"])


@router.put("/{schedule_id}", response_model=ApiResponse[Any])
def update_schedule(
    schedule_id: int,
    body: ScheduleUpdateRequest,
    owner_id: Annotated[int, Depends(current_owner_id)],
    container: Annotated[AppContainer, Depends(get_container)],
    schedules: Annotated[ScheduleOperations, Depends(get_schedule_operations)],
) -> ApiResponse[Any]:
    logger.info("Update schedule request. schedule_id=%s owner_id=%s", schedule_id, owner_id)
    with container.repository.new_session() as session:
        result = schedules.update_schedule(
            session,
            owner_id=owner_id,
            schedule_id=schedule_id,
            request=body,
        )
        session.commit()
    return ApiResponse.success("Schedule updated", result)


@router.put(
    "/{schedule_id}/async",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiResponse[AcceptedTaskResponse],
    response_model_exclude_none=True,
)
def update_schedule_async(
    schedule_id: int,
    body: ScheduleUpdateRequest,
    owner_id: Annotated[int, Depends(current_owner_id)],
    container: Annotated[AppContainer, Depends(get_container)],
    schedules: Annotated[ScheduleOperations, Depends(get_schedule_operations)],
) -> ApiResponse[Any]:
    logger.info("Update schedule async request. schedule_id=%s owner_id=%s", schedule_id, owner_id)
    accepted = container.runner.start(
        schedule_update_operation(schedules),
        requester_id=owner_id,
        request_payload=body,
        owner_id=owner_id,
        schedule_id=schedule_id,
        request=body,
    )
    return ApiResponse.accepted(
        "Schedule update accepted",
        AcceptedTaskResponse.from_accepted(accepted),
    )
