"""Storage backends for persistent cells.

A backend reads and writes one serialized value. Three concrete shapes exist:

- FileBackend: a UTF-8 text file, written atomically
- KeyValueBackend: one key in a key-value store (LocalStorage, MemoryStore,
  CacheStore, or anything with get/set)
- CompositeBackend: a primary/fallback pair, read in order, written to both
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from pathlib import Path
from typing import Any, Protocol

from cellstore.errors import WriteError
from cellstore.fileio import read_json, read_text, write_json_atomic, write_text_atomic
from cellstore.workspace import local_storage_path, support_root

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    name: str

    async def read(self) -> str | None: ...

    async def write(self, value: str) -> None: ...


class KeyValueStore(Protocol):
    """get/set may be plain functions or coroutines."""

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: str) -> Any: ...


# ── Key-value stores ──────────────────────────────────────────


class MemoryStore:
    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = {} if data is None else data

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class CacheStore:
    """Namespaced key-value store over a (possibly shared) mapping."""

    def __init__(self, namespace: str = "default", data: dict[str, str] | None = None):
        self.namespace = namespace
        self.data: dict[str, str] = {} if data is None else data

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> str | None:
        return self.data.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self.data[self._key(key)] = value


_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    """One lock per file, shared by every LocalStorage opened on it."""
    key = Path(path).expanduser().resolve()
    with _path_locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


class LocalStorage:
    """Durable key-value store kept as one JSON object file.

    Every set rewrites the whole file, so it suits small values such as
    selections and flags rather than large collections. Instances opened on
    the same path serialize their writes through a shared lock.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    async def get(self, key: str) -> str | None:
        data = await asyncio.to_thread(read_json, self.path)
        value = data.get(key)
        return None if value is None else str(value)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set_sync, key, value)

    def _set_sync(self, key: str, value: str) -> None:
        with self._lock:
            data = read_json(self.path)
            data[key] = value
            write_json_atomic(self.path, data)

    async def items(self) -> dict[str, str]:
        return await asyncio.to_thread(read_json, self.path)


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


# ── Backends ──────────────────────────────────────────────────


class FileBackend:
    def __init__(self, path: Path):
        self.path = Path(path)
        self.name = f"file:{self.path.name}"

    @property
    def file_name(self) -> str:
        return self.path.name

    async def read(self) -> str | None:
        return await asyncio.to_thread(read_text, self.path)

    async def write(self, value: str) -> None:
        await asyncio.to_thread(write_text_atomic, self.path, value)


class KeyValueBackend:
    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key
        self.name = f"{type(store).__name__}:{key}"

    async def read(self) -> str | None:
        return await _maybe_await(self.store.get(self.key))

    async def write(self, value: str) -> None:
        await _maybe_await(self.store.set(self.key, value))


class CompositeBackend:
    """Read from primary, falling back when it fails or is empty; write to both.

    Writes are a best-effort fan-out, not a transaction: a failure on one side
    never rolls back the other.
    """

    def __init__(self, primary: StorageBackend, fallback: StorageBackend):
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}+{fallback.name}"

    @property
    def file_name(self) -> str | None:
        return getattr(self.primary, "file_name", None)

    async def read(self) -> str | None:
        try:
            raw = await self.primary.read()
        except Exception as e:
            logger.warning("Reading %s failed, trying %s: %s", self.primary.name, self.fallback.name, e)
            raw = None
        if raw:
            return raw
        return await self.fallback.read()

    async def write(self, value: str) -> None:
        backends = (self.primary, self.fallback)
        results = await asyncio.gather(*(b.write(value) for b in backends), return_exceptions=True)
        failures = []
        for backend, result in zip(backends, results):
            if isinstance(result, BaseException):
                failures.append((backend.name, result))
        if failures:
            raise WriteError(failures)


def backend_for(
    kind: str = "localStorage",
    *,
    key: str | None = None,
    file_name: str | None = None,
    directory: Path | None = None,
    store: KeyValueStore | None = None,
) -> StorageBackend:
    """Build a backend from a "localStorage" / "file" / "both" selection."""
    if kind not in ("localStorage", "file", "both"):
        raise ValueError(f"Unknown backend kind: {kind!r}")
    if kind in ("localStorage", "both") and not key:
        raise ValueError(f"Backend {kind!r} requires a key")
    if kind in ("file", "both") and not file_name:
        raise ValueError(f"Backend {kind!r} requires a file name")

    if directory is None:
        directory = support_root()
    if store is None:
        store = LocalStorage(local_storage_path(directory))

    if kind == "file":
        return FileBackend(directory / file_name)
    if kind == "localStorage":
        return KeyValueBackend(store, key)
    return CompositeBackend(FileBackend(directory / file_name), KeyValueBackend(store, key))
