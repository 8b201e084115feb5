"""Runtime configuration for the task core, worker pools and HTTP API."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import time
from pathlib import Path

_CLEANUP_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$")
DB_POOL_MAX_SHARE_PERCENT = 70


@dataclass(slots=True)
class DatabaseSettings:
    """Shared SQLAlchemy connection pool settings."""

    pool_size: int = 10
    busy_timeout_ms: int = 5_000


@dataclass(slots=True)
class TaskSettings:
    """Task ledger retention and cleanup settings."""

    retention_hours: int = 24
    cleanup_time: str = "02:00"
    cleanup_enabled: bool = True

    def cleanup_at(self) -> time:
        """Parse the daily cleanup time-of-day (HH:MM, local clock)."""

        match = _CLEANUP_TIME_RE.match(self.cleanup_time.strip())
        if match is None:
            raise ValueError(
                f"SHIFTDESK_TASK_CLEANUP_TIME must be HH:MM, got {self.cleanup_time!r}.",
            )
        hour = int(match.group("hour"))
        minute = int(match.group("minute"))
        if hour > 23 or minute > 59:  # noqa: PLR2004
            raise ValueError(
                f"SHIFTDESK_TASK_CLEANUP_TIME is out of range: {self.cleanup_time!r}.",
            )
        return time(hour=hour, minute=minute)


@dataclass(slots=True)
class PoolSettings:
    """Sizing of one bounded worker pool."""

    core_size: int
    max_size: int
    queue_capacity: int
    thread_name_prefix: str
    keep_alive_seconds: float = 60.0
    await_termination_seconds: float = 60.0


def _default_general_pool() -> PoolSettings:
    return PoolSettings(
        core_size=10,
        max_size=50,
        queue_capacity=500,
        thread_name_prefix="async-task-",
    )


def _default_db_pool() -> PoolSettings:
    return PoolSettings(
        core_size=5,
        max_size=7,
        queue_capacity=100,
        thread_name_prefix="async-db-",
    )


@dataclass(slots=True)
class ApiSettings:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".shiftdesk.db")
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    tasks: TaskSettings = field(default_factory=TaskSettings)
    general_pool: PoolSettings = field(default_factory=_default_general_pool)
    db_pool: PoolSettings = field(default_factory=_default_db_pool)
    api: ApiSettings = field(default_factory=ApiSettings)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        await_termination = float(os.getenv("SHIFTDESK_POOL_AWAIT_TERMINATION_SECONDS", "60"))
        return cls(
            db_path=db_path or Path(os.getenv("SHIFTDESK_DB_PATH", ".shiftdesk.db")),
            database=DatabaseSettings(
                pool_size=int(os.getenv("SHIFTDESK_DB_POOL_SIZE", "10")),
                busy_timeout_ms=int(os.getenv("SHIFTDESK_SQLITE_BUSY_TIMEOUT_MS", "5000")),
            ),
            tasks=TaskSettings(
                retention_hours=int(os.getenv("SHIFTDESK_TASK_RETENTION_HOURS", "24")),
                cleanup_time=os.getenv("SHIFTDESK_TASK_CLEANUP_TIME", "02:00"),
                cleanup_enabled=_env_bool("SHIFTDESK_TASK_CLEANUP_ENABLED", default=True),
            ),
            general_pool=PoolSettings(
                core_size=int(os.getenv("SHIFTDESK_GENERAL_POOL_CORE", "10")),
                max_size=int(os.getenv("SHIFTDESK_GENERAL_POOL_MAX", "50")),
                queue_capacity=int(os.getenv("SHIFTDESK_GENERAL_POOL_QUEUE", "500")),
                thread_name_prefix="async-task-",
                await_termination_seconds=await_termination,
            ),
            db_pool=PoolSettings(
                core_size=int(os.getenv("SHIFTDESK_DB_POOL_CORE", "5")),
                max_size=int(os.getenv("SHIFTDESK_DB_POOL_MAX", "7")),
                queue_capacity=int(os.getenv("SHIFTDESK_DB_POOL_QUEUE", "100")),
                thread_name_prefix="async-db-",
                await_termination_seconds=await_termination,
            ),
            api=ApiSettings(
                host=os.getenv("SHIFTDESK_API_HOST", "127.0.0.1"),
                port=int(os.getenv("SHIFTDESK_API_PORT", "8080")),
            ),
            log_level=os.getenv("SHIFTDESK_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Raise configuration error if pool sizing or retention is inconsistent."""

        if self.database.pool_size <= 0:
            raise ValueError("SHIFTDESK_DB_POOL_SIZE must be > 0.")
        if self.database.busy_timeout_ms <= 0:
            raise ValueError("SHIFTDESK_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if self.tasks.retention_hours <= 0:
            raise ValueError("SHIFTDESK_TASK_RETENTION_HOURS must be > 0.")
        self.tasks.cleanup_at()

        _validate_pool("SHIFTDESK_GENERAL_POOL", self.general_pool)
        _validate_pool("SHIFTDESK_DB_POOL", self.db_pool)
        if self.db_pool.max_size * 100 > self.database.pool_size * DB_POOL_MAX_SHARE_PERCENT:
            raise ValueError(
                f"SHIFTDESK_DB_POOL_MAX must not exceed {DB_POOL_MAX_SHARE_PERCENT}% of "
                f"SHIFTDESK_DB_POOL_SIZE ({self.db_pool.max_size} of {self.database.pool_size}): "
                "database-bound workers would starve request handlers of connections.",
            )


def _validate_pool(prefix: str, pool: PoolSettings) -> None:
    if pool.core_size <= 0:
        raise ValueError(f"{prefix}_CORE must be > 0.")
    if pool.max_size < pool.core_size:
        raise ValueError(
            f"{prefix}_MAX must be >= {prefix}_CORE ({pool.max_size} < {pool.core_size}).",
        )
    if pool.queue_capacity <= 0:
        raise ValueError(f"{prefix}_QUEUE must be > 0.")
    if pool.await_termination_seconds < 0:
        raise ValueError("SHIFTDESK_POOL_AWAIT_TERMINATION_SECONDS must be >= 0.")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
