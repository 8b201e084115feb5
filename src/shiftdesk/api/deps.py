"""FastAPI dependencies resolving collaborators from the application state."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from shiftdesk.container import AppContainer
from shiftdesk.operations.ports import ScheduleOperations, StoreOperations
from shiftdesk.tasks.services import TaskService


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_task_service(
    container: Annotated[AppContainer, Depends(get_container)],
) -> TaskService:
    return container.task_service


def get_store_operations(request: Request) -> StoreOperations:
    return request.app.state.store_operations


def get_schedule_operations(request: Request) -> ScheduleOperations:
    return request.app.state.schedule_operations


def current_owner_id(
    x_owner_id: Annotated[str | None, Header()] = None,
) -> int:
    """Authenticated owner id.

    Reads ``X-Owner-Id``; the authentication layer replaces this dependency
    through ``app.dependency_overrides``.
    """

    if x_owner_id is None or not x_owner_id.strip().isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return int(x_owner_id)
