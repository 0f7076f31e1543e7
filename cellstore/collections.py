"""Request collections, the current-collection selection, and their actions.

Collections live in one file-backed cell. Every action validates the whole
new list before committing it with set_and_flush, so an invalid edit never
reaches memory or disk.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from cellstore.backends import FileBackend, KeyValueBackend, KeyValueStore, LocalStorage
from cellstore.cell import PersistentCell
from cellstore.codecs import model_list_codec
from cellstore.computed import ComputedCell, computed
from cellstore.errors import ValidationError
from cellstore.models import Collection, Header, Request
from cellstore.registry import CellRegistry
from cellstore.workspace import local_storage_path, store_path

COLLECTIONS_FILE = "collections.json"
CURRENT_COLLECTION_KEY = "currentCollectionId"
DEFAULT_COLLECTION_NAME = "Default"

METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "GRAPHQL")


# ── Validation ────────────────────────────────────────────────


def _is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def _validate_headers(headers: Any) -> list[str]:
    if headers is None:
        return []
    if not isinstance(headers, list):
        return ["headers must be a list"]
    errors = []
    for i, header in enumerate(headers):
        if not isinstance(header, dict) or not isinstance(header.get("value"), str):
            errors.append(f"header {i}: value must be a string")
        elif header.get("key") is not None and not isinstance(header["key"], str):
            errors.append(f"header {i}: key must be a string")
    return errors


def validate_request(request: dict[str, Any]) -> list[str]:
    """Validate a request and return list of errors (empty if valid)."""
    errors = []
    if not _is_uuid(request.get("id")):
        errors.append("id must be a UUID")
    if request.get("method") not in METHODS:
        errors.append(f"method must be one of {', '.join(METHODS)}")
    if not _is_url(request.get("url")):
        errors.append("url must be an absolute URL")
    for key in ("title", "body", "params", "query"):
        if request.get(key) is not None and not isinstance(request[key], str):
            errors.append(f"{key} must be a string")
    variables = request.get("variables")
    if variables is not None:
        try:
            json.loads(variables)
        except (TypeError, ValueError):
            errors.append("variables must be a valid JSON string")
    errors.extend(_validate_headers(request.get("headers")))
    return errors


def validate_collection(collection: dict[str, Any]) -> list[str]:
    errors = []
    if not _is_uuid(collection.get("id")):
        errors.append("id must be a UUID")
    if not isinstance(collection.get("title"), str):
        errors.append("title must be a string")
    base_url = collection.get("baseUrl")
    if base_url and not _is_url(base_url):
        errors.append("baseUrl must be an absolute URL")
    requests = collection.get("requests")
    if not isinstance(requests, list):
        errors.append("requests must be a list")
    else:
        for i, request in enumerate(requests):
            if not isinstance(request, dict):
                errors.append(f"request {i}: expected an object")
                continue
            errors.extend(f"request {i}: {e}" for e in validate_request(request))
    errors.extend(_validate_headers(collection.get("headers")))
    return errors


COLLECTIONS_CODEC = model_list_codec(Collection, validate_collection)


def _check(collections: list[Collection]) -> list[Collection]:
    errors = []
    for i, collection in enumerate(collections):
        errors.extend(f"Item {i}: {e}" for e in validate_collection(collection.to_dict()))
    if errors:
        raise ValidationError(errors)
    return collections


# ── Store ─────────────────────────────────────────────────────


@dataclass
class CollectionStore:
    collections: PersistentCell[list[Collection]]
    current_id: PersistentCell[str | None]
    current: ComputedCell[Collection | None]


def find_collection(collections: list[Collection], collection_id: str | None) -> Collection | None:
    if not collection_id:
        return None
    for collection in collections:
        if collection.id == collection_id:
            return collection
    return None


def open_collections(
    registry: CellRegistry,
    root: Path | None = None,
    store: KeyValueStore | None = None,
) -> CollectionStore:
    """Register the collection cells and derive the current collection."""
    if store is None:
        store = LocalStorage(local_storage_path(root))
    collections = registry.create(
        "collections",
        [],
        FileBackend(store_path(COLLECTIONS_FILE, root)),
        serialize=COLLECTIONS_CODEC.serialize,
        deserialize=COLLECTIONS_CODEC.deserialize,
    )
    current_id = registry.create(
        "current-collection-id",
        None,
        KeyValueBackend(store, CURRENT_COLLECTION_KEY),
        is_equal=lambda a, b: a == b,
    )
    current = computed([current_id, collections], lambda cid, cols: find_collection(cols, cid))
    return CollectionStore(collections, current_id, current)


def _default_collection() -> Collection:
    return Collection(id=str(uuid.uuid4()), title=DEFAULT_COLLECTION_NAME)


async def initialize_default_collection(store: CollectionStore) -> Collection | None:
    """On first run, create and select a default collection."""
    await store.collections.ready
    await store.current_id.ready
    if store.collections.get():
        return None
    collection = _default_collection()
    await store.collections.set_and_flush([collection])
    await store.current_id.set_and_flush(collection.id)
    return collection


# ── Actions ───────────────────────────────────────────────────


async def create_collection(
    store: CollectionStore,
    title: str,
    base_url: str = "",
    headers: list[Header] | None = None,
    requests: list[Request] | None = None,
) -> Collection:
    collection = Collection(
        id=str(uuid.uuid4()),
        title=title,
        base_url=base_url,
        requests=list(requests or []),
        headers=list(headers or []),
    )
    await store.collections.set_and_flush(_check([*store.collections.get(), collection]))
    return collection


async def update_collection(store: CollectionStore, collection_id: str, **changes: Any) -> None:
    updated = [
        replace(c, **changes) if c.id == collection_id else c
        for c in store.collections.get()
    ]
    await store.collections.set_and_flush(_check(updated))


async def delete_collection(store: CollectionStore, collection_id: str) -> None:
    """Delete a collection.

    Deleting the last one replaces it with a fresh default collection and
    selects that; otherwise a selection of the deleted collection is cleared.
    """
    remaining = [c for c in store.collections.get() if c.id != collection_id]
    if not remaining:
        default = _default_collection()
        remaining.append(default)
        store.current_id.set(default.id)
    elif store.current_id.get() == collection_id:
        store.current_id.set(None)
    await store.collections.set_and_flush(remaining)
    await store.current_id.flush()


async def select_collection(store: CollectionStore, collection_id: str | None) -> None:
    if collection_id is not None and find_collection(store.collections.get(), collection_id) is None:
        raise ValueError(f"Collection not found: {collection_id}")
    await store.current_id.set_and_flush(collection_id)


async def create_request(store: CollectionStore, collection_id: str, data: dict[str, Any]) -> Request:
    """Add a request built from form data ({method, url, title, ...})."""
    request = Request.from_dict({**data, "id": str(uuid.uuid4())})
    updated = [
        replace(c, requests=[*c.requests, request]) if c.id == collection_id else c
        for c in store.collections.get()
    ]
    await store.collections.set_and_flush(_check(updated))
    return request


async def update_request(store: CollectionStore, collection_id: str, request_id: str, **changes: Any) -> None:
    updated = []
    for c in store.collections.get():
        if c.id == collection_id:
            c = replace(c, requests=[replace(r, **changes) if r.id == request_id else r for r in c.requests])
        updated.append(c)
    await store.collections.set_and_flush(_check(updated))


async def delete_request(store: CollectionStore, collection_id: str, request_id: str) -> None:
    updated = [
        replace(c, requests=[r for r in c.requests if r.id != request_id]) if c.id == collection_id else c
        for c in store.collections.get()
    ]
    await store.collections.set_and_flush(updated)
