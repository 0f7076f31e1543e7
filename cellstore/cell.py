"""Observable value cells, plain and persistent.

A Cell holds one value and notifies subscribers synchronously whenever a new
value is committed. A PersistentCell additionally hydrates itself from a
storage backend once, at construction, and from then on writes every committed
value back, either immediately or after a debounce window.

Cells run on a single asyncio event loop. get/set/subscribe never suspend;
hydration, writes, flush and file import/export do.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Generic, TypeVar

from cellstore.backends import StorageBackend
from cellstore.codecs import JSON
from cellstore.errors import (
    CellImportError,
    ErrorReporter,
    HydrationError,
    LoggingReporter,
    WriteError,
)
from cellstore.fileio import write_text_atomic
from cellstore.workspace import support_root

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]


class Cell(Generic[T]):
    """In-memory observable value with optional equality gating."""

    def __init__(self, initial: T, *, is_equal: Callable[[T, T], bool] | None = None):
        self._value = initial
        self._is_equal = is_equal
        self._subscribers: list[Subscriber] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Commit a value and notify subscribers in registration order.

        When an equality predicate says the value is unchanged this is a
        no-op. Exceptions from the predicate or a subscriber propagate.
        """
        if self._is_equal is not None and self._is_equal(self._value, value):
            return
        self._value = value
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """Call *callback* with every committed value from now on."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe


class PersistentCell(Cell[T]):
    """A Cell that hydrates from and persists to a StorageBackend.

    Must be created while an event loop is running: the constructor schedules
    hydration on it and returns immediately. ``ready`` resolves once
    hydration has settled, successfully or not, and never raises.
    """

    def __init__(
        self,
        initial: T,
        backend: StorageBackend,
        *,
        name: str | None = None,
        debounce: float | None = None,
        serialize: Callable[[T], str] | None = None,
        deserialize: Callable[[str], T] | None = None,
        is_equal: Callable[[T, T], bool] | None = None,
        reporter: ErrorReporter | None = None,
        export_dir: Path | None = None,
    ):
        super().__init__(initial, is_equal=is_equal)
        self._loop = asyncio.get_running_loop()
        self.initial = initial
        self.backend = backend
        self.name = name or backend.name
        self.debounce = debounce
        self.serialize = serialize or JSON.serialize
        self.deserialize = deserialize or JSON.deserialize
        self.reporter = reporter or LoggingReporter()
        self._export_dir = export_dir
        self._timer: asyncio.TimerHandle | None = None
        self._writes: set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()
        self.hydrated = False
        self._hydration: asyncio.Task[None] = self._loop.create_task(self._hydrate())

    def __repr__(self) -> str:
        return f"<PersistentCell {self.name} hydrated={self.hydrated}>"

    # ── Hydration ─────────────────────────────────────────────

    @property
    def ready(self) -> asyncio.Future[None]:
        """Awaitable that resolves once hydration has settled.

        Cancelling a waiter (a timeout, a closed watch) never cancels the
        hydration itself.
        """
        return asyncio.shield(self._hydration)

    async def _hydrate(self) -> None:
        try:
            raw = await self.backend.read()
            if raw is not None:
                self.set(self.deserialize(raw))
        except Exception as e:
            error = HydrationError(self.name, e)
            self.reporter.report("Hydration error", {"cell": self.name, "error": str(e), "exception": error})
        self.hydrated = True
        # The write path attaches only now, so hydration's own set above is
        # never written back and nothing is written before the load finished.
        self.subscribe(self._persist)

    # ── Write path ────────────────────────────────────────────

    def _persist(self, value: T) -> None:
        if self.debounce is None:
            self._spawn_write(value)
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self.debounce, self._fire)

    def _fire(self) -> None:
        self._timer = None
        self._spawn_write(self._value)

    def _spawn_write(self, value: T) -> None:
        task = self._loop.create_task(self._write_quietly(value))
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _write_quietly(self, value: T) -> None:
        try:
            await self._write(value)
        except Exception as e:
            logger.error("Background write for %s failed: %s", self.name, e)

    async def _write(self, value: T) -> None:
        raw = self.serialize(value)
        async with self._write_lock:
            try:
                await self.backend.write(raw)
            except WriteError:
                raise
            except Exception as e:
                raise WriteError([(self.backend.name, e)]) from e

    @property
    def pending(self) -> bool:
        """True while a debounced write is scheduled or a write is in flight."""
        return self._timer is not None or bool(self._writes)

    async def drain(self) -> None:
        """Wait for background writes already started to finish."""
        while self._writes:
            await asyncio.gather(*list(self._writes))

    # ── Manual control ────────────────────────────────────────

    async def flush(self) -> None:
        """Cancel any pending debounced write and write the current value now.

        Raises WriteError if the backend write fails.
        """
        await self.ready
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        await self._write(self._value)

    async def set_and_flush(self, value: T) -> None:
        await self.ready
        self.set(value)
        await self.flush()

    def _export_path(self, name: str | Path | None) -> Path:
        directory = self._export_dir
        if directory is None:
            directory = support_root()
        default = getattr(self.backend, "file_name", None) or "state.json"
        return directory / (name or default)

    async def export_to_file(self, name: str | Path | None = None) -> Path:
        """Write the current value to a file outside the normal write path.

        Relative names resolve against the export directory; the default name
        is the backend's file name, else ``state.json``.
        """
        path = self._export_path(name)
        raw = self.serialize(self._value)
        await asyncio.to_thread(write_text_atomic, path, raw)
        return path

    async def import_from_file(self, name: str | Path | None = None) -> None:
        """Replace the value with the contents of a file.

        Unlike hydration this fails loudly: CellImportError on a missing,
        unreadable or undecodable file, and the current value is kept.
        """
        await self.ready
        path = self._export_path(name)
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
            value = self.deserialize(raw)
        except Exception as e:
            raise CellImportError(f"Failed to import {path}: {e}") from e
        self.set(value)
