"""Helpers for browsing a JSON-like value one level at a time."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Sequence

PAGE_SIZE = 200
PREVIEW_LIMIT = 4000


@dataclass
class Row:
    id: str
    label: str
    accessor: str | int
    type: str
    meta: str | None
    can_drill: bool


def type_of(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def get_node(root: Any, path: Sequence[str | int]) -> Any:
    """Follow *path* from *root*; None as soon as a step cannot be taken."""
    node = root
    for seg in path:
        if isinstance(node, dict):
            node = node.get(seg)
        elif isinstance(node, (list, tuple)) and isinstance(seg, int) and 0 <= seg < len(node):
            node = node[seg]
        else:
            return None
    return node


def _row(key: str | int, value: Any) -> Row:
    t = type_of(value)
    meta = None
    if t == "array":
        meta = f"{len(value)} items"
    elif t == "object":
        meta = f"{len(value)} keys"
    return Row(id=str(key), label=str(key), accessor=key, type=t, meta=meta, can_drill=t in ("array", "object"))


def list_children_paged(node: Any, page: int = 0, page_size: int = PAGE_SIZE) -> tuple[list[Row], int]:
    """Rows for one page of *node*'s children, and the total child count.

    A primitive node yields a single "(value)" row.
    """
    start = page * page_size
    end = start + page_size
    if isinstance(node, (list, tuple)):
        return [_row(i, node[i]) for i in range(start, min(end, len(node)))], len(node)
    if isinstance(node, dict):
        keys = list(node)
        return [_row(k, node[k]) for k in keys[start:end]], len(keys)
    return [Row(id="(value)", label="(value)", accessor=0, type=type_of(node), meta=None, can_drill=False)], 1


def _strip_cycles(value: Any, seen: set[int]) -> Any:
    if isinstance(value, (dict, list, tuple)):
        if id(value) in seen:
            return "[Circular]"
        seen = seen | {id(value)}
        if isinstance(value, dict):
            return {k: _strip_cycles(v, seen) for k, v in value.items()}
        return [_strip_cycles(v, seen) for v in value]
    return value


def safe_stringify(value: Any) -> str:
    """Pretty JSON; cycles become "[Circular]" and unknown objects use str()."""
    try:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    except ValueError:
        return json.dumps(_strip_cycles(value, set()), indent=2, ensure_ascii=False, default=str)


def preview(value: Any, limit: int = PREVIEW_LIMIT) -> str:
    text = safe_stringify(value)
    if len(text) > limit:
        return text[:limit] + "\n… (truncated)"
    return text
