"""Typed attribute values decoded from schema-less YAML nodes.

Resource attributes are written in configuration as ``{key, value}`` pairs
where ``value`` is a scalar or a homogeneous list of strings, ints, floats
or bools. The decoder looks at the node shape and its resolved YAML tag and
dispatches to the matching typed decode path.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union

import yaml
from yaml.constructor import ConstructorError, SafeConstructor

from .exceptions import AttributeDecodeError, UnsupportedShapeError, UnsupportedTagError
from .utils import construct, short_tag, to_node

STR_TAG = "tag:yaml.org,2002:str"
INT_TAG = "tag:yaml.org,2002:int"
FLOAT_TAG = "tag:yaml.org,2002:float"
BOOL_TAG = "tag:yaml.org,2002:bool"

Scalar = Union[str, int, float, bool]


class ValueKind(str, Enum):
    """Tag of a :class:`TypedValue`."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING_SLICE = "string_slice"
    INT_SLICE = "int_slice"
    FLOAT_SLICE = "float_slice"
    BOOL_SLICE = "bool_slice"

    @property
    def is_slice(self) -> bool:
        return self.value.endswith("_slice")


_SLICE_OF = {
    ValueKind.STRING: ValueKind.STRING_SLICE,
    ValueKind.INT: ValueKind.INT_SLICE,
    ValueKind.FLOAT: ValueKind.FLOAT_SLICE,
    ValueKind.BOOL: ValueKind.BOOL_SLICE,
}

_KIND_OF_TAG = {
    STR_TAG: ValueKind.STRING,
    INT_TAG: ValueKind.INT,
    FLOAT_TAG: ValueKind.FLOAT,
    BOOL_TAG: ValueKind.BOOL,
}

_TAG_OF_KIND = {kind: tag for tag, kind in _KIND_OF_TAG.items()}


@dataclass(frozen=True)
class TypedValue:
    """A tagged union over the supported attribute value types.

    Slice values are stored as tuples so the value stays immutable.
    """

    kind: ValueKind
    value: Scalar | tuple[Scalar, ...]

    def as_otel(self) -> Scalar | list[Scalar]:
        """Return the value in the form OpenTelemetry attributes accept."""
        if self.kind.is_slice:
            return list(self.value)  # type: ignore[arg-type]
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class Attribute:
    key: str
    value: TypedValue

    @classmethod
    def parse(cls, data: Any) -> "Attribute":
        """Decode an attribute from a ``{key, value}`` mapping.

        ``data`` may be a composed YAML mapping node or plain Python data.
        Plain data is represented as YAML nodes first so the same tag based
        dispatch applies to both.
        """
        if isinstance(data, Attribute):
            return data
        node = data if isinstance(data, yaml.Node) else to_node(data)
        if not isinstance(node, yaml.MappingNode):
            raise UnsupportedShapeError(f"attribute must be a mapping, got {short_tag(node.tag)}")

        key: str | None = None
        value_node: yaml.Node | None = None
        for key_node, item_node in node.value:
            field = construct(key_node)
            if field == "key":
                key = construct(item_node)
            elif field == "value":
                value_node = item_node
            else:
                raise AttributeDecodeError(f"unknown attribute field {field!r}")

        if not isinstance(key, str) or not key:
            raise AttributeDecodeError("attribute key must be a non-empty string")
        if value_node is None:
            raise AttributeDecodeError(f"{key}: attribute value is missing")
        return cls(key=key, value=decode_attribute_value(value_node))


_constructor = SafeConstructor()

_SCALAR_DECODERS: dict[ValueKind, Callable[[yaml.ScalarNode], Scalar]] = {
    ValueKind.STRING: _constructor.construct_yaml_str,
    ValueKind.INT: _constructor.construct_yaml_int,
    ValueKind.FLOAT: _constructor.construct_yaml_float,
    ValueKind.BOOL: _constructor.construct_yaml_bool,
}


def decode_attribute_value(node: yaml.Node) -> TypedValue:
    """Decode a scalar or sequence node into a :class:`TypedValue`.

    Raises:
        UnsupportedTagError: A scalar (or the first element of a sequence)
            has a tag other than str, int, float or bool.
        UnsupportedShapeError: The node is a mapping or another node kind.
        AttributeDecodeError: A later sequence element cannot be decoded as
            the kind chosen from the first element.
    """
    if isinstance(node, yaml.ScalarNode):
        kind = _KIND_OF_TAG.get(node.tag)
        if kind is None:
            raise UnsupportedTagError(short_tag(node.tag))
        return TypedValue(kind, _decode_scalar(node, kind))
    if isinstance(node, yaml.SequenceNode):
        return _decode_sequence(node)
    if isinstance(node, yaml.MappingNode):
        raise UnsupportedShapeError("mapping")
    raise UnsupportedShapeError(type(node).__name__)


def _decode_scalar(node: yaml.ScalarNode, kind: ValueKind) -> Scalar:
    try:
        return _SCALAR_DECODERS[kind](node)
    except (ConstructorError, KeyError, ValueError) as exc:
        raise AttributeDecodeError(f"cannot decode {node.value!r} as {kind.value}: {exc}") from exc


def _decode_sequence(node: yaml.SequenceNode) -> TypedValue:
    items = node.value
    if not items:
        # Nothing to peek at, so the element kind falls back to int.
        return TypedValue(ValueKind.INT_SLICE, ())

    first = items[0]
    kind = _KIND_OF_TAG.get(first.tag) if isinstance(first, yaml.ScalarNode) else None
    if kind is None:
        raise UnsupportedTagError(short_tag(first.tag))

    values = tuple(_decode_element(item, kind) for item in items)
    return TypedValue(_SLICE_OF[kind], values)


def _decode_element(node: yaml.Node, kind: ValueKind) -> Scalar:
    if not isinstance(node, yaml.ScalarNode):
        raise AttributeDecodeError(
            f"cannot decode {short_tag(node.tag)} element into a {kind.value} slice"
        )

    if kind is ValueKind.STRING:
        # Any scalar decodes into a string as its literal text.
        return node.value
    if kind is ValueKind.FLOAT and node.tag in (INT_TAG, FLOAT_TAG):
        return float(_decode_scalar(node, _KIND_OF_TAG[node.tag]))
    if node.tag == _TAG_OF_KIND[kind]:
        return _decode_scalar(node, kind)
    raise AttributeDecodeError(
        f"cannot decode {short_tag(node.tag)} {node.value!r} into a {kind.value} slice"
    )

