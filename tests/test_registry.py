from __future__ import annotations

import pytest
import yaml
from pydantic import ValidationError

from telewire import EXPORTERS, PROCESSORS
from telewire.components import ExporterConfig
from telewire.exceptions import InvalidIdentifierError
from telewire.registry import ModelDecoder, Registry


class StdoutExporterConfig(ExporterConfig):
    prefix: str = ""


def _node(text: str) -> yaml.Node:
    return yaml.compose(text, Loader=yaml.SafeLoader)


def test_register_and_decode():
    registry: Registry[ExporterConfig] = Registry()

    @registry.register("stdout")
    class _Config(StdoutExporterConfig):
        pass

    assert "stdout" in registry
    assert registry.types() == ["stdout"]
    decoded = registry.get("stdout")(_node("prefix: '> '"))
    assert isinstance(decoded, _Config)
    assert decoded.prefix == "> "


def test_model_decoder_treats_empty_node_as_defaults():
    decoder = ModelDecoder(StdoutExporterConfig)
    assert decoder(_node("")) == StdoutExporterConfig()
    assert decoder(_node("~")) == StdoutExporterConfig()
    with pytest.raises(ValidationError):
        decoder(_node("unknown_field: 1"))


def test_get_missing_type():
    assert Registry().get("nope") is None


def test_set_accepts_plain_callables():
    registry = Registry()
    registry.set("raw", lambda node: node.tag)
    assert registry.get("raw")(_node("1")) == "tag:yaml.org,2002:int"


@pytest.mark.parametrize("type_name", ["", "1abc", "with/slash", "has space"])
def test_set_rejects_invalid_type_names(type_name):
    with pytest.raises(InvalidIdentifierError):
        Registry().set(type_name, lambda node: None)


def test_merge_later_wins():
    first = Registry({"a": lambda node: "first", "b": lambda node: "first"})
    second = Registry({"b": lambda node: "second", "c": lambda node: "second"})
    merged = Registry.merge(first, None, second)
    assert merged.types() == ["a", "b", "c"]
    assert merged.get("b")(None) == "second"
    assert len(first) == 2


def test_copy_is_independent():
    original = Registry({"a": lambda node: None})
    copied = original.copy()
    copied.set("b", lambda node: None)
    assert "b" not in original
    assert list(copied) == ["a", "b"]


def test_builtin_components_are_registered():
    assert PROCESSORS.types() == ["batcher", "periodic_reader", "resource"]
    assert EXPORTERS.types() == ["debug", "otlp", "otlphttp", "prometheus"]
