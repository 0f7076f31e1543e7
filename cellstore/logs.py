"""Logging setup for cellstore."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from cellstore.workspace import Settings, logs_path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("cellstore")


def configure_logging(
    settings: Settings | None = None,
    root: Path | None = None,
    stream: bool = True,
) -> logging.Logger:
    """Attach stream (and optionally file) handlers to the cellstore logger.

    Safe to call more than once: handlers installed by a previous call are
    replaced rather than duplicated. Terminal UIs pass stream=False so log
    lines do not draw over the screen.
    """
    if settings is None:
        settings = Settings()

    for handler in list(logger.handlers):
        if getattr(handler, "_cellstore", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if stream:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        stream_handler._cellstore = True  # type: ignore[attr-defined]
        logger.addHandler(stream_handler)

    if settings.log_to_file:
        directory = logs_path(root)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / "cellstore.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler._cellstore = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
