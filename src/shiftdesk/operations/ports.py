"""Protocols implemented by the entity services (store and schedule persistence)."""

from __future__ import annotations

from typing import Any, Protocol

from sqlmodel import Session

from shiftdesk.operations.requests import ScheduleUpdateRequest, StoreRequest


class StoreOperations(Protocol):
    """Store persistence and validation."""

    def create_store(self, session: Session, *, owner_id: int, request: StoreRequest) -> Any:
        """Create a store for the owner and return its representation."""


class ScheduleOperations(Protocol):
    """Schedule persistence and validation."""

    def update_schedule(
        self,
        session: Session,
        *,
        owner_id: int,
        schedule_id: int,
        request: ScheduleUpdateRequest,
    ) -> Any:
        """Apply a status and/or shift update and return the schedule detail."""
