"""Asynchronous variants of the store and schedule operations."""

from __future__ import annotations

from shiftdesk.operations.ports import ScheduleOperations, StoreOperations
from shiftdesk.tasks.models import SCHEDULE_UPDATE, STORE_CREATE
from shiftdesk.tasks.runner import AsyncOperation


def store_create_operation(stores: StoreOperations) -> AsyncOperation:
    return AsyncOperation(task_type=STORE_CREATE, handler=stores.create_store)


def schedule_update_operation(schedules: ScheduleOperations) -> AsyncOperation:
    return AsyncOperation(task_type=SCHEDULE_UPDATE, handler=schedules.update_schedule)
