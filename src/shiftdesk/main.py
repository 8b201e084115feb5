"""CLI entrypoint for shiftdesk."""

from pathlib import Path

import rich_click as click

from shiftdesk import __version__
from shiftdesk.tasks.controllers import (
    TaskCliController,
    TaskListCommand,
    TaskShowCommand,
    TaskStaleCommand,
    TaskSweepCommand,
)

click.rich_click.USE_MARKDOWN = True
TASK_CONTROLLER = TaskCliController()


@click.group()
@click.version_option(version=__version__, prog_name="shiftdesk")
def shiftdesk() -> None:
    """Shift-scheduling backend: async task core."""


@shiftdesk.command("serve")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--host", default=None, help="Bind host. Defaults to SHIFTDESK_API_HOST.")
@click.option(
    "--port",
    type=click.IntRange(min=1, max=65535),
    default=None,
    help="Bind port. Defaults to SHIFTDESK_API_PORT.",
)
def serve(db_path: Path | None, host: str | None, port: int | None) -> None:
    """Run the HTTP API with worker pools and the daily cleanup."""

    import uvicorn

    from shiftdesk.api.app import create_app
    from shiftdesk.config import Settings
    from shiftdesk.logging_setup import configure_logging

    settings = Settings.from_env(db_path=db_path)
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=host or settings.api.host,
        port=port or settings.api.port,
        log_config=None,
    )


@shiftdesk.group()
def tasks() -> None:
    """Task ledger commands."""


@tasks.command("show")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--task-id", required=True, help="Task id.")
def tasks_show(db_path: Path | None, task_id: str) -> None:
    """Show one task snapshot."""

    _emit_lines(TASK_CONTROLLER.show(TaskShowCommand(db_path=db_path, task_id=task_id)))


@tasks.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--status",
    type=click.Choice(["IN_PROGRESS", "COMPLETED", "FAILED", "CANCELLED"], case_sensitive=False),
    default=None,
    help="Optional status filter.",
)
@click.option("--requester-id", type=int, default=None, help="Only tasks of this requester.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=50,
    show_default=True,
    help="Max tasks to print.",
)
def tasks_list(
    db_path: Path | None,
    status: str | None,
    requester_id: int | None,
    limit: int,
) -> None:
    """List tasks, newest first."""

    _emit_lines(
        TASK_CONTROLLER.list_tasks(
            TaskListCommand(
                db_path=db_path,
                status=status,
                requester_id=requester_id,
                limit=limit,
            ),
        ),
    )


@tasks.command("stale")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--older-than-minutes",
    type=click.IntRange(min=1),
    default=60,
    show_default=True,
    help="Report IN_PROGRESS tasks created longer ago than this.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=100,
    show_default=True,
    help="Max tasks to print.",
)
def tasks_stale(db_path: Path | None, older_than_minutes: int, limit: int) -> None:
    """Report tasks stranded IN_PROGRESS (for example after a worker crash)."""

    _emit_lines(
        TASK_CONTROLLER.stale(
            TaskStaleCommand(
                db_path=db_path,
                older_than_minutes=older_than_minutes,
                limit=limit,
            ),
        ),
    )


@tasks.command("sweep")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def tasks_sweep(db_path: Path | None) -> None:
    """Delete expired COMPLETED/FAILED tasks now."""

    _emit_lines(TASK_CONTROLLER.sweep(TaskSweepCommand(db_path=db_path)))


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    shiftdesk()
