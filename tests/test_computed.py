"""Tests for cellstore/computed.py and cellstore/watch.py"""

import asyncio

import pytest

from cellstore.cell import Cell, PersistentCell
from cellstore.computed import computed
from cellstore.watch import watch


def test_computed_recomputes_on_source_change():
    a = Cell(1)
    b = Cell(2)
    total = computed([a, b], lambda x, y: x + y)
    assert total.get() == 3
    a.set(10)
    assert total.get() == 12


def test_computed_notifies_only_on_change():
    source = Cell(3)
    parity = computed([source], lambda n: n % 2)
    seen = []
    parity.subscribe(seen.append)
    source.set(5)
    source.set(4)
    assert seen == [0]


def test_computed_close_stops_updates():
    source = Cell("a")
    upper = computed([source], str.upper)
    upper.close()
    source.set("b")
    assert upper.get() == "A"


def test_plain_sources_count_as_hydrated():
    assert computed([Cell(1)], lambda n: n).hydrated is True


@pytest.mark.asyncio
async def test_computed_ready_waits_for_persistent_sources(recording):
    gate = asyncio.Event()
    persistent = PersistentCell(0, recording(stored="5", read_gate=gate))
    doubled = computed([persistent, Cell(1)], lambda n, m: n * 2 + m)
    assert doubled.hydrated is False
    assert doubled.get() == 1

    gate.set()
    await doubled.ready
    assert doubled.hydrated is True
    assert doubled.get() == 11


# ── watch ─────────────────────────────────────────────────────


def test_watch_plain_cell_is_hydrated():
    cell = Cell("x")
    changes = []
    w = watch(cell, changes.append)
    assert w.is_hydrated is True
    cell.set("y")
    assert w.value == "y"
    assert changes == [w]
    w.close()
    cell.set("z")
    assert w.value == "y"


@pytest.mark.asyncio
async def test_watch_tracks_hydration(recording):
    gate = asyncio.Event()
    cell = PersistentCell([], recording(stored='["loaded"]', read_gate=gate))
    states = []
    w = watch(cell, lambda w: states.append((w.is_hydrated, w.value)))
    assert w.is_hydrated is False
    assert w.value == []

    gate.set()
    await w.wait()
    assert w.is_hydrated is True
    assert w.value == ["loaded"]
    assert states[-1] == (True, ["loaded"])
    w.close()


@pytest.mark.asyncio
async def test_watch_already_hydrated_cell(recording):
    cell = PersistentCell(1, recording())
    await cell.ready
    w = watch(cell)
    assert w.is_hydrated is True
    assert (await w.wait()) is w


@pytest.mark.asyncio
async def test_closing_watch_keeps_source_hydrating(recording):
    gate = asyncio.Event()
    backend = recording(stored='"persisted"', read_gate=gate)
    cell = PersistentCell("initial", backend)
    w = watch(computed([cell], str.upper))
    await asyncio.sleep(0.01)
    w.close()
    await asyncio.sleep(0.01)

    gate.set()
    await cell.ready
    assert cell.hydrated is True
    assert cell.get() == "persisted"

    cell.set("next")
    await cell.drain()
    assert backend.writes == ['"next"']
