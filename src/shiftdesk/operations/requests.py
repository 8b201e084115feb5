"""Request payloads accepted by the store and schedule operations."""

from __future__ import annotations

from datetime import date, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScheduleStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PUBLISHED = "PUBLISHED"


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoreRequest(_CamelModel):
    name: str = Field(min_length=1, max_length=100)
    business_type: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=255)
    open_time: time | None = None
    close_time: time | None = None
    store_holiday: DayOfWeek | None = None


class ShiftRequest(_CamelModel):
    employee_id: int
    work_date: date
    start_time: time
    end_time: time


class ScheduleUpdateRequest(_CamelModel):
    status: ScheduleStatus | None = None
    shifts: list[ShiftRequest] | None = Field(default=None, max_length=100)

    def has_update(self) -> bool:
        return self.status is not None or self.shifts is not None
