"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

from shiftdesk import __version__
from shiftdesk.api.errors import install_exception_handlers
from shiftdesk.api.routers import schedules, stores, tasks
from shiftdesk.config import Settings
from shiftdesk.container import AppContainer
from shiftdesk.operations.ports import ScheduleOperations, StoreOperations

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    container: AppContainer | None = None,
    store_operations: StoreOperations | None = None,
    schedule_operations: ScheduleOperations | None = None,
) -> FastAPI:
    """Build the HTTP app around one container.

    A container passed in stays owned by the caller; otherwise the app builds
    one from ``settings`` and closes it when the lifespan ends. Store and
    schedule routes are mounted only for the collaborators supplied.
    """

    owns_container = container is None
    if container is None:
        container = AppContainer.build(settings or Settings.from_env())

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        container.start_background()
        try:
            yield
        finally:
            # Pool drains and thread joins block; keep them off the event loop.
            if owns_container:
                await run_in_threadpool(container.close)
            else:
                await run_in_threadpool(container.sweeper.stop)

    app = FastAPI(title="shiftdesk API", version=__version__, lifespan=lifespan)
    app.state.container = container
    app.state.store_operations = store_operations
    app.state.schedule_operations = schedule_operations

    install_exception_handlers(app)
    app.include_router(tasks.router)
    if store_operations is not None:
        app.include_router(stores.router)
    if schedule_operations is not None:
        app.include_router(schedules.router)

    logger.info(
        "API created: stores=%s schedules=%s",
        store_operations is not None,
        schedule_operations is not None,
    )
    return app
