"""Request history: a capped, newest-first log with an on/off setting."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cellstore.backends import CompositeBackend, FileBackend, KeyValueBackend, KeyValueStore, LocalStorage
from cellstore.cell import PersistentCell
from cellstore.codecs import model_list_codec
from cellstore.models import HistoryEntry
from cellstore.registry import CellRegistry
from cellstore.workspace import Settings, local_storage_path, store_path

HISTORY_FILE = "request-history.json"
HISTORY_KEY = "request-history"
HISTORY_ENABLED_KEY = "settings-history-enabled"


def validate_history_entry(entry: dict[str, Any]) -> list[str]:
    errors = []
    for key in ("id", "createdAt"):
        if not entry.get(key):
            errors.append(f"Missing required field: {key}")
    for key in ("requestSnapshot", "response"):
        if not isinstance(entry.get(key), dict):
            errors.append(f"{key} must be an object")
    return errors


HISTORY_CODEC = model_list_codec(HistoryEntry, validate_history_entry)


@dataclass
class HistoryStore:
    entries: PersistentCell[list[HistoryEntry]]
    enabled: PersistentCell[bool]
    limit: int = 100


def open_history(
    registry: CellRegistry,
    settings: Settings | None = None,
    root: Path | None = None,
    store: KeyValueStore | None = None,
) -> HistoryStore:
    """Register the history cells.

    The log is written to both its own file and local storage; the file wins
    when hydrating.
    """
    if settings is None:
        settings = Settings()
    if store is None:
        store = LocalStorage(local_storage_path(root))
    entries = registry.create(
        "history",
        [],
        CompositeBackend(
            FileBackend(store_path(HISTORY_FILE, root)),
            KeyValueBackend(store, HISTORY_KEY),
        ),
        serialize=HISTORY_CODEC.serialize,
        deserialize=HISTORY_CODEC.deserialize,
    )
    enabled = registry.create("history-enabled", True, KeyValueBackend(store, HISTORY_ENABLED_KEY))
    return HistoryStore(entries, enabled, limit=settings.history_limit)


async def add_history_entry(
    history: HistoryStore,
    request: dict[str, Any],
    response: dict[str, Any],
    source_request_id: str | None = None,
    active_environment_id: str | None = None,
) -> HistoryEntry | None:
    """Prepend an entry, keeping at most ``history.limit`` entries.

    Returns None without recording anything when history is disabled.
    """
    if not history.enabled.get():
        return None
    entry = HistoryEntry(
        id=str(uuid.uuid4()),
        created_at=datetime.now(timezone.utc).isoformat(),
        request_snapshot=request,
        response=response,
        source_request_id=source_request_id,
        active_environment_id=active_environment_id,
    )
    await history.entries.set_and_flush([entry, *history.entries.get()][: history.limit])
    return entry


async def delete_history_entry(history: HistoryStore, entry_id: str) -> None:
    await history.entries.set_and_flush([e for e in history.entries.get() if e.id != entry_id])


async def clear_history(history: HistoryStore) -> None:
    await history.entries.set_and_flush([])
