"""Tests for cellstore/backup.py"""

import json
from datetime import datetime, timezone

import pytest

from cellstore.backends import KeyValueBackend, MemoryStore
from cellstore.backup import backup_all, backup_dir_name
from cellstore.registry import CellRegistry

NOW = datetime(2024, 7, 4, 10, 30, 15, 123000, tzinfo=timezone.utc)


def test_backup_dir_name_has_no_colons():
    assert backup_dir_name(NOW) == "2024-07-04T10-30-15.123+00-00"


@pytest.mark.asyncio
async def test_backup_all_exports_every_cell(root):
    registry = CellRegistry(export_dir=root)
    registry.create("decks", [{"id": "d1"}], KeyValueBackend(MemoryStore(), "decks"))
    registry.create("selection", "e1", KeyValueBackend(MemoryStore(), "selection"))
    await registry.ready()

    directory = await backup_all(registry, root, NOW)
    assert directory == root / "backups" / "2024-07-04T10-30-15.123+00-00"
    assert json.loads((directory / "decks.json").read_text(encoding="utf-8")) == [{"id": "d1"}]
    assert json.loads((directory / "selection.json").read_text(encoding="utf-8")) == "e1"


@pytest.mark.asyncio
async def test_backup_failure_propagates(root):
    registry = CellRegistry(export_dir=root)
    registry.create("ok", 1, KeyValueBackend(MemoryStore(), "ok"))
    (root / "backups").write_text("not a directory", encoding="utf-8")
    await registry.ready()
    with pytest.raises(OSError):
        await backup_all(registry, root, NOW)
