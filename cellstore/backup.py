"""Timestamped backups of every registered cell."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from cellstore.registry import CellRegistry
from cellstore.workspace import backups_path

logger = logging.getLogger(__name__)


def backup_dir_name(now: datetime | None = None) -> str:
    """ISO timestamp usable as a directory name (':' replaced by '-')."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace(":", "-")


async def backup_all(registry: CellRegistry, root: Path | None = None, now: datetime | None = None) -> Path:
    """Export every cell to backups/<timestamp>/<cell name>.json.

    Exports run in parallel. Any failure propagates after all exports were
    attempted.
    """
    directory = backups_path(root) / backup_dir_name(now)
    cells = list(registry)
    results = await asyncio.gather(
        *(cell.export_to_file(directory / f"{cell.name}.json") for cell in cells),
        return_exceptions=True,
    )
    for cell, result in zip(cells, results):
        if isinstance(result, BaseException):
            logger.error("Backup of %s failed: %s", cell.name, result)
            raise result
    logger.info("Backed up %d cells to %s", len(cells), directory)
    return directory
