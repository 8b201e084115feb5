"""Persistent task ledger backed by SQLModel + SQLite."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlmodel import Session, col, select

from shiftdesk.storage.alembic_runner import upgrade_head
from shiftdesk.storage.common import (
    build_sqlite_engine,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from shiftdesk.storage.sqlmodel_models import AsyncTask
from shiftdesk.tasks.errors import TaskNotFoundError
from shiftdesk.tasks.models import SWEEPABLE_STATUSES, TaskStatus, TaskView


class TaskRepository:
    """Ledger facade: plain CRUD plus the expiry bulk delete.

    Rows carry no version column; ``save`` overwrites whatever is stored.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        pool_size: int = 10,
        sqlite_busy_timeout_ms: int = 5_000,
    ) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(
            db_path=db_path,
            busy_timeout_ms=sqlite_busy_timeout_ms,
            pool_size=pool_size,
        )

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def new_session(self) -> Session:
        """Open a fresh session on the shared connection pool."""

        return Session(self.engine)

    def insert(self, task: TaskView) -> TaskView:
        """Persist a new task row."""

        now = utc_now()
        with Session(self.engine) as session:
            row = AsyncTask(
                task_id=task.task_id,
                status=task.status.value,
                task_type=task.task_type,
                user_id=task.requester_id,
                request_data=task.request_data,
                result_data=task.result_data,
                error_message=task.error_message,
                progress=task.progress,
                started_at=_optional_db_datetime(task.started_at),
                completed_at=_optional_db_datetime(task.completed_at),
                expires_at=_optional_db_datetime(task.expires_at),
                created_at=to_db_datetime(task.created_at or now),
                updated_at=to_db_datetime(now),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_task_view(row)

    def get(self, task_id: str) -> TaskView | None:
        """Return one task or None when the id is unknown."""

        with Session(self.engine) as session:
            row = session.exec(
                select(AsyncTask).where(AsyncTask.task_id == task_id),
            ).one_or_none()
            if row is None:
                return None
            return _to_task_view(row)

    def find_by_id(self, task_id: str) -> TaskView:
        """Return one task or raise TaskNotFoundError."""

        task = self.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def save(self, task: TaskView) -> TaskView:
        """Overwrite the mutable fields of an existing row (last write wins)."""

        now = utc_now()
        with Session(self.engine) as session:
            result = session.exec(
                sa_update(AsyncTask)
                .where(col(AsyncTask.task_id) == task.task_id)
                .values(
                    status=task.status.value,
                    result_data=task.result_data,
                    error_message=task.error_message,
                    progress=task.progress,
                    completed_at=_optional_db_datetime(task.completed_at),
                    updated_at=to_db_datetime(now),
                ),
            )
            if result.rowcount != 1:
                session.rollback()
                raise TaskNotFoundError(task.task_id)
            session.commit()
        task.updated_at = now
        return task

    def delete_expired(self, now: datetime) -> int:
        """Delete COMPLETED/FAILED rows whose expiry is strictly before ``now``."""

        with Session(self.engine) as session:
            result = session.exec(
                sa_delete(AsyncTask).where(
                    col(AsyncTask.status).in_([status.value for status in SWEEPABLE_STATUSES]),
                    col(AsyncTask.expires_at) < to_db_datetime(now),
                ),
            )
            session.commit()
            return int(result.rowcount or 0)

    def list_by_requester(
        self,
        *,
        requester_id: int,
        status: TaskStatus | None = None,
        limit: int = 50,
    ) -> list[TaskView]:
        """List tasks submitted by one requester, newest first."""

        with Session(self.engine) as session:
            statement = select(AsyncTask).where(AsyncTask.user_id == requester_id)
            if status is not None:
                statement = statement.where(AsyncTask.status == status.value)
            rows = session.exec(
                statement.order_by(col(AsyncTask.created_at).desc()).limit(max(1, limit)),
            ).all()
            return [_to_task_view(row) for row in rows]

    def list_stale(
        self,
        *,
        status: TaskStatus,
        created_before: datetime,
        limit: int = 100,
    ) -> list[TaskView]:
        """List tasks still in ``status`` that were created before the cutoff, oldest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(AsyncTask)
                .where(
                    AsyncTask.status == status.value,
                    col(AsyncTask.created_at) < to_db_datetime(created_before),
                )
                .order_by(col(AsyncTask.created_at).asc())
                .limit(max(1, limit)),
            ).all()
            return [_to_task_view(row) for row in rows]

    def list_tasks(self, *, status: TaskStatus | None = None, limit: int = 50) -> list[TaskView]:
        """List tasks across requesters, newest first."""

        with Session(self.engine) as session:
            statement = select(AsyncTask)
            if status is not None:
                statement = statement.where(AsyncTask.status == status.value)
            rows = session.exec(
                statement.order_by(col(AsyncTask.created_at).desc()).limit(max(1, limit)),
            ).all()
            return [_to_task_view(row) for row in rows]


def _optional_db_datetime(value: datetime | None) -> datetime | None:
    return to_db_datetime(value) if value is not None else None


def _optional_aware_datetime(value: datetime | None) -> datetime | None:
    return to_utc_aware_datetime(value) if value is not None else None


def _to_task_view(row: AsyncTask) -> TaskView:
    return TaskView(
        task_id=row.task_id,
        status=TaskStatus(row.status),
        task_type=row.task_type,
        requester_id=row.user_id,
        request_data=row.request_data,
        result_data=row.result_data,
        error_message=row.error_message,
        progress=row.progress,
        started_at=_optional_aware_datetime(row.started_at),
        completed_at=_optional_aware_datetime(row.completed_at),
        expires_at=_optional_aware_datetime(row.expires_at),
        created_at=to_utc_aware_datetime(row.created_at),
        updated_at=to_utc_aware_datetime(row.updated_at),
    )
