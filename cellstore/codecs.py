"""Serialize/deserialize pairs for persisted cell values."""

from __future__ import annotations

import json
from typing import Any, Callable, NamedTuple

import yaml

from cellstore.errors import ValidationError


class Codec(NamedTuple):
    serialize: Callable[[Any], str]
    deserialize: Callable[[str], Any]


def dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def dump_yaml(value: Any) -> str:
    return yaml.safe_dump(value, default_flow_style=False, allow_unicode=True, sort_keys=False)


JSON = Codec(dump_json, json.loads)
YAML = Codec(dump_yaml, yaml.safe_load)


def model_list_codec(model: Any, validate: Callable[[dict[str, Any]], list[str]]) -> Codec:
    """JSON codec for a list of dataclass models with from_dict/to_dict.

    Every item is validated on the way in; the first invalid item raises
    ValidationError so callers never see half-trusted data.
    """

    def serialize(items: list[Any]) -> str:
        return dump_json([item.to_dict() for item in items])

    def deserialize(raw: str) -> list[Any]:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValidationError([f"Expected a list, got {type(data).__name__}"])
        items = []
        for i, d in enumerate(data):
            if not isinstance(d, dict):
                raise ValidationError([f"Item {i}: expected an object"])
            errors = validate(d)
            if errors:
                raise ValidationError([f"Item {i}: {e}" for e in errors])
            items.append(model.from_dict(d))
        return items

    return Codec(serialize, deserialize)
