"""Composition root: builds the ledger, pools, runner and sweeper once per process."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from shiftdesk.config import Settings
from shiftdesk.tasks.cleanup import CleanupSweeper
from shiftdesk.tasks.executors import WorkerPools
from shiftdesk.tasks.repository import TaskRepository
from shiftdesk.tasks.runner import AsyncWorkRunner
from shiftdesk.tasks.services import TaskService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppContainer:
    """Process-wide collaborators, passed explicitly to routers and CLI controllers."""

    settings: Settings
    repository: TaskRepository
    task_service: TaskService
    pools: WorkerPools
    runner: AsyncWorkRunner
    sweeper: CleanupSweeper

    @classmethod
    def build(cls, settings: Settings) -> AppContainer:
        settings.validate()
        repository = TaskRepository(
            settings.db_path,
            pool_size=settings.database.pool_size,
            sqlite_busy_timeout_ms=settings.database.busy_timeout_ms,
        )
        repository.init_schema()
        task_service = TaskService(
            repository=repository,
            retention=timedelta(hours=settings.tasks.retention_hours),
        )
        pools = WorkerPools.from_settings(settings)
        runner = AsyncWorkRunner(
            task_service=task_service,
            executor=pools.db,
            session_factory=repository.new_session,
        )
        sweeper = CleanupSweeper(
            repository=repository,
            run_at=settings.tasks.cleanup_at(),
        )
        return cls(
            settings=settings,
            repository=repository,
            task_service=task_service,
            pools=pools,
            runner=runner,
            sweeper=sweeper,
        )

    def start_background(self) -> None:
        if self.settings.tasks.cleanup_enabled:
            self.sweeper.start()

    def close(self) -> None:
        """Stop the sweeper, drain both pools with the bounded wait, release the engine."""

        self.sweeper.stop()
        self.pools.shutdown(wait=True)
        self.repository.close()
        logger.info("Application container closed")
