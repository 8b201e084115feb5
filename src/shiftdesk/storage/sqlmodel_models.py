"""SQLModel ORM tables for the task ledger."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlmodel import Field, SQLModel

ERROR_MESSAGE_MAX_LENGTH = 500


class AsyncTask(SQLModel, table=True):
    __tablename__ = "async_tasks"  # type: ignore[bad-override]
    __table_args__ = (
        Index("idx_async_tasks_user_status", "user_id", "status"),
        Index("idx_async_tasks_status_expires", "status", "expires_at"),
    )

    task_id: str = Field(sa_column=Column(String(36), primary_key=True))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    task_type: str = Field(sa_column=Column(String(50), nullable=False))
    user_id: int = Field(nullable=False)
    request_data: str | None = Field(default=None, sa_column=Column(Text))
    result_data: str | None = Field(default=None, sa_column=Column(Text))
    error_message: str | None = Field(
        default=None,
        sa_column=Column(String(ERROR_MESSAGE_MAX_LENGTH)),
    )
    progress: int = Field(default=0)
    started_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    completed_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )
    expires_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
