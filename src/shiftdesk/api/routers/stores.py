"""Store creation endpoints: synchronous and task-backed variants."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from shiftdesk.api.deps import current_owner_id, get_container, get_store_operations
from shiftdesk.api.schemas import AcceptedTaskResponse, ApiResponse
from shiftdesk.container import AppContainer
from shiftdesk.operations.async_operations import store_create_operation
from shiftdesk.operations.ports import StoreOperations
from shiftdesk.operations.requests import StoreRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/stores", tags=["stores"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[Any])
def create_store(
    body: StoreRequest,
    owner_id: Annotated[int, Depends(current_owner_id)],
    container: Annotated[AppContainer, Depends(get_container)],
    stores: Annotated[StoreOperations, Depends(get_store_operations)],
) -> ApiResponse[Any]:
    logger.info("Create store request. owner_id=%s store_name=%s", owner_id, body.name)
    with container.repository.new_session() as session:
        result = stores.create_store(session, owner_id=owner_id, request=body)
        session.commit()
    return ApiResponse.created("Store created", result)


@router.post(
    "/async",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiResponse[AcceptedTaskResponse],
    response_model_exclude_none=True,
)
def create_store_async(
    body: StoreRequest,
    owner_id: Annotated[int, Depends(current_owner_id)],
    container: Annotated[AppContainer, Depends(get_container)],
    stores: Annotated[StoreOperations, Depends(get_store_operations)],
) -> ApiResponse[Any]:
    logger.info("Create store async request. owner_id=%s store_name=%s", owner_id, body.name)
    accepted = container.runner.start(
        store_create_operation(stores),
        requester_id=owner_id,
        request_payload=body,
        owner_id=owner_id,
        request=body,
    )
    return ApiResponse.accepted(
        "Store creation accepted",
        AcceptedTaskResponse.from_accepted(accepted),
    )
