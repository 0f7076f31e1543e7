"""Read-only cells derived from other cells."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Generic, Sequence, TypeVar

from cellstore.cell import Cell, Subscriber, Unsubscribe

T = TypeVar("T")


class ComputedCell(Generic[T]):
    """Value of ``fn(*source_values)``, recomputed whenever a source commits.

    Subscribers hear about a recomputation only when its result differs from
    the previous one.
    """

    def __init__(self, sources: Sequence[Cell[Any] | ComputedCell[Any]], fn: Callable[..., T]):
        self.sources = list(sources)
        self._fn = fn
        self._inner: Cell[T] = Cell(self._compute(), is_equal=lambda a, b: a == b)
        self._unsubscribers = [source.subscribe(self._recompute) for source in self.sources]

    def _compute(self) -> T:
        return self._fn(*(source.get() for source in self.sources))

    def _recompute(self, _: Any) -> None:
        self._inner.set(self._compute())

    def get(self) -> T:
        return self._inner.get()

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        return self._inner.subscribe(callback)

    @property
    def hydrated(self) -> bool:
        return all(getattr(source, "hydrated", True) for source in self.sources)

    @property
    def ready(self) -> asyncio.Future:
        """Resolves once every persistent source has hydrated."""
        return asyncio.gather(*(source.ready for source in self.sources if hasattr(source, "ready")))

    def close(self) -> None:
        """Detach from the sources; the value stops updating."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []


def computed(sources: Sequence[Cell[Any] | ComputedCell[Any]], fn: Callable[..., T]) -> ComputedCell[T]:
    return ComputedCell(sources, fn)
