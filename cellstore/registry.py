"""Process-wide registry of persistent cells.

Cells are built once at startup through the registry and passed to whatever
needs them, instead of living as import-time globals. The registry owns the
shutdown path: flushing every cell on exit signals and on close.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from typing import Any, Iterator

from cellstore.backends import StorageBackend
from cellstore.cell import PersistentCell
from cellstore.errors import ErrorReporter, LoggingReporter

logger = logging.getLogger(__name__)

EXIT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CellRegistry:
    def __init__(self, reporter: ErrorReporter | None = None, export_dir: Path | None = None):
        self.reporter = reporter or LoggingReporter()
        self.export_dir = export_dir
        self._cells: dict[str, PersistentCell[Any]] = {}
        self._signals: list[signal.Signals] = []
        self._exit_task: asyncio.Task | None = None
        self.shutdown = asyncio.Event()

    def create(self, name: str, initial: Any, backend: StorageBackend, **options: Any) -> PersistentCell[Any]:
        """Construct a cell, register it under *name*, and start its hydration."""
        if name in self._cells:
            raise ValueError(f"Cell already registered: {name}")
        options.setdefault("reporter", self.reporter)
        options.setdefault("export_dir", self.export_dir)
        cell = PersistentCell(initial, backend, name=name, **options)
        self._cells[name] = cell
        return cell

    def __getitem__(self, name: str) -> PersistentCell[Any]:
        return self._cells[name]

    def __contains__(self, name: object) -> bool:
        return name in self._cells

    def __iter__(self) -> Iterator[PersistentCell[Any]]:
        return iter(list(self._cells.values()))

    def __len__(self) -> int:
        return len(self._cells)

    def names(self) -> list[str]:
        return list(self._cells)

    async def ready(self) -> None:
        """Wait until every registered cell has hydrated."""
        await asyncio.gather(*(cell.ready for cell in self))

    async def flush_all(self) -> list[tuple[str, BaseException]]:
        """Flush every cell in parallel. Failures are logged and returned."""
        cells = list(self)
        results = await asyncio.gather(*(cell.flush() for cell in cells), return_exceptions=True)
        failures = []
        for cell, result in zip(cells, results):
            if isinstance(result, BaseException):
                logger.error("Flush failed for %s: %s", cell.name, result)
                failures.append((cell.name, result))
        return failures

    async def aclose(self) -> None:
        await self.flush_all()
        await asyncio.gather(*(cell.drain() for cell in self))
        self.remove_exit_hooks()

    async def __aenter__(self) -> CellRegistry:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # ── Exit hooks ────────────────────────────────────────────

    def install_exit_hooks(self) -> None:
        """Flush every cell on SIGINT/SIGTERM, then set ``shutdown``.

        Best effort only: the writes are asynchronous and the process may be
        gone before they land. set_and_flush is the durable path.
        """
        loop = asyncio.get_running_loop()
        for sig in EXIT_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_exit_signal, sig)
            except (NotImplementedError, RuntimeError):
                logger.warning("Cannot install handler for %s on this platform", sig.name)
                continue
            self._signals.append(sig)

    def remove_exit_hooks(self) -> None:
        if not self._signals:
            return
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            loop.remove_signal_handler(sig)
        self._signals = []

    def _on_exit_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, flushing %d cells", sig.name, len(self))
        self._exit_task = asyncio.get_running_loop().create_task(self.flush_all())
        self._exit_task.add_done_callback(lambda _: self.shutdown.set())
