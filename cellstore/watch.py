"""Track a cell's value and hydration status for a UI layer."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from cellstore.cell import PersistentCell
from cellstore.computed import ComputedCell


class CellWatch:
    """Live view of a cell: ``value`` and ``is_hydrated``.

    Plain cells count as hydrated immediately; persistent and computed cells
    flip ``is_hydrated`` when their ``ready`` signal resolves. ``on_change``
    is called after every value change and once on hydration.
    """

    def __init__(self, cell: Any, on_change: Callable[[CellWatch], None] | None = None):
        self.cell = cell
        self.value = cell.get()
        self.on_change = on_change
        self._unsubscribe = cell.subscribe(self._on_value)
        self._task: asyncio.Task | None = None
        if isinstance(cell, (PersistentCell, ComputedCell)) and not cell.hydrated:
            self.is_hydrated = False
            self._task = asyncio.get_running_loop().create_task(self._wait_ready())
        else:
            self.is_hydrated = True

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _on_value(self, value: Any) -> None:
        self.value = value
        self._notify()

    async def _wait_ready(self) -> None:
        await self.cell.ready
        self.value = self.cell.get()
        self.is_hydrated = True
        self._notify()

    async def wait(self) -> CellWatch:
        if self._task is not None:
            await self._task
        return self

    def close(self) -> None:
        self._unsubscribe()
        if self._task is not None and not self._task.done():
            self._task.cancel()


def watch(cell: Any, on_change: Callable[[CellWatch], None] | None = None) -> CellWatch:
    return CellWatch(cell, on_change)
