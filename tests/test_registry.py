"""Tests for cellstore/registry.py"""

import signal

import pytest

from cellstore.backends import KeyValueBackend, MemoryStore
from cellstore.errors import CollectingReporter, WriteError
from cellstore.registry import CellRegistry


@pytest.mark.asyncio
async def test_create_registers_cell(recording):
    registry = CellRegistry()
    cell = registry.create("prefs", {}, recording())
    assert registry["prefs"] is cell
    assert "prefs" in registry
    assert len(registry) == 1
    assert registry.names() == ["prefs"]
    assert cell.name == "prefs"
    await registry.ready()
    assert cell.hydrated is True


@pytest.mark.asyncio
async def test_duplicate_name_rejected(recording):
    registry = CellRegistry()
    registry.create("prefs", {}, recording())
    with pytest.raises(ValueError, match="already registered"):
        registry.create("prefs", {}, recording())
    await registry.ready()


@pytest.mark.asyncio
async def test_cells_inherit_reporter_and_export_dir(tmp_path, recording):
    reporter = CollectingReporter()
    registry = CellRegistry(reporter=reporter, export_dir=tmp_path)
    cell = registry.create("broken", [], recording(fail_read=True))
    await registry.ready()
    assert reporter.reports[0][1]["cell"] == "broken"
    assert await cell.export_to_file() == tmp_path / "state.json"


@pytest.mark.asyncio
async def test_flush_all_returns_failures(recording):
    registry = CellRegistry()
    good = recording()
    registry.create("good", 1, good)
    registry.create("bad", 2, recording(fail_write=True, name="bad-backend"))
    failures = await registry.flush_all()
    assert good.writes == ["1"]
    assert [name for name, _ in failures] == ["bad"]
    assert isinstance(failures[0][1], WriteError)


@pytest.mark.asyncio
async def test_aclose_flushes_debounced_writes(recording):
    backend = recording()
    async with CellRegistry() as registry:
        cell = registry.create("slow", 0, backend, debounce=10)
        await cell.ready
        cell.set(42)
        assert backend.writes == []
    assert backend.writes == ["42"]
    assert cell.pending is False


@pytest.mark.asyncio
async def test_exit_signal_flushes_and_sets_shutdown():
    store = MemoryStore()
    registry = CellRegistry()
    cell = registry.create("sel", None, KeyValueBackend(store, "sel"), debounce=10)
    await cell.ready
    cell.set("abc")

    registry._on_exit_signal(signal.SIGTERM)
    await registry.shutdown.wait()
    assert store.get("sel") == '"abc"'


@pytest.mark.asyncio
async def test_install_and_remove_exit_hooks():
    registry = CellRegistry()
    registry.install_exit_hooks()
    registry.remove_exit_hooks()
    registry.remove_exit_hooks()
