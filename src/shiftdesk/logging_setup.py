"""Process-wide logging configuration."""

from __future__ import annotations

import logging
import sys


class _ThirdPartyNoiseFilter(logging.Filter):
    """Keep shiftdesk and uvicorn logs, only warnings and above from other libraries."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(("shiftdesk", "uvicorn")):
            return True
        if name == "py.warnings":
            return record.levelno >= logging.ERROR
        return record.levelno >= logging.WARNING


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install one stderr handler on the root logger.

    Thread names are part of the format: worker pool threads are named after
    their pool prefix (``async-db-3``), which makes task execution traceable.
    Call once, before the first log record is emitted.
    """

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(handler)

    logging.captureWarnings(True)
