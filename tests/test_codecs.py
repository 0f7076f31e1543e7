"""Tests for cellstore/codecs.py"""

import pytest

from cellstore.codecs import JSON, YAML, model_list_codec
from cellstore.errors import ValidationError
from cellstore.models import Variable


def _validate_variable(d):
    return [] if isinstance(d.get("value"), str) else ["value must be a string"]


VARIABLES = model_list_codec(Variable, _validate_variable)


def test_json_keeps_unicode():
    assert JSON.serialize({"name": "café"}) == '{"name": "café"}'
    assert JSON.deserialize('{"name": "café"}') == {"name": "café"}


def test_yaml_keeps_key_order():
    text = YAML.serialize({"b": 1, "a": 2})
    assert text.index("b:") < text.index("a:")
    assert YAML.deserialize(text) == {"b": 1, "a": 2}


def test_model_list_codec_decodes_models():
    items = VARIABLES.deserialize('[{"value": "x", "isSecret": true}]')
    assert items == [Variable(value="x", is_secret=True)]
    assert VARIABLES.serialize(items) == '[{"value": "x", "isSecret": true}]'


def test_model_list_codec_rejects_non_list():
    with pytest.raises(ValidationError, match="Expected a list, got dict"):
        VARIABLES.deserialize('{"value": "x"}')


def test_model_list_codec_rejects_non_object_item():
    with pytest.raises(ValidationError, match="Item 1: expected an object"):
        VARIABLES.deserialize('[{"value": "x"}, 3]')


def test_model_list_codec_reports_item_errors():
    with pytest.raises(ValidationError) as excinfo:
        VARIABLES.deserialize('[{"value": "x"}, {"value": 3}]')
    assert excinfo.value.errors == ["Item 1: value must be a string"]
