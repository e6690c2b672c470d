"""Small helpers shared by the config decoder and the built-in components."""

from __future__ import annotations

import io
import re
from datetime import timedelta
from typing import Annotated, Any, Iterator

import yaml
from pydantic import BeforeValidator

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def construct(node: yaml.Node) -> Any:
    """Build plain Python data from a composed YAML node using the safe constructor."""
    loader = yaml.SafeLoader("")
    try:
        return loader.construct_document(node)
    finally:
        loader.dispose()


def to_node(data: Any) -> yaml.Node:
    """Represent plain Python data as a YAML node tree with resolved tags."""
    dumper = yaml.SafeDumper(io.StringIO())
    try:
        return dumper.represent_data(data)
    finally:
        dumper.dispose()


def compose(text: str) -> yaml.Node | None:
    return yaml.compose(text, Loader=yaml.SafeLoader)


def mapping_items(node: yaml.Node) -> Iterator[tuple[yaml.Node, yaml.Node]]:
    """Iterate the key/value node pairs of a mapping node, following merge keys."""
    if not isinstance(node, yaml.MappingNode):
        raise TypeError(f"expected a mapping, got {short_tag(node.tag)}")
    loader = yaml.SafeLoader("")
    try:
        loader.flatten_mapping(node)
    finally:
        loader.dispose()
    yield from node.value


def is_null(node: yaml.Node | None) -> bool:
    return node is None or (
        isinstance(node, yaml.ScalarNode) and node.tag == "tag:yaml.org,2002:null"
    )


def short_tag(tag: str) -> str:
    """``tag:yaml.org,2002:int`` -> ``!!int``."""
    prefix = "tag:yaml.org,2002:"
    if tag.startswith(prefix):
        return "!!" + tag[len(prefix) :]
    return tag


def parse_duration(value: Any) -> Any:
    """Accept Go-style duration strings such as ``1m30s`` or ``500ms``.

    Other values are returned unchanged so pydantic can apply its own
    timedelta parsing (numbers of seconds, ISO-8601 strings).
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return value
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return timedelta(0)
    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            return value
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        return value
    return timedelta(seconds=sign * seconds)


Duration = Annotated[timedelta, BeforeValidator(parse_duration)]


def millis(value: timedelta | None) -> int | None:
    if value is None:
        return None
    return int(value.total_seconds() * 1000)


def compact(**kwargs: Any) -> dict[str, Any]:
    """Drop keyword arguments whose value is None."""
    return {key: value for key, value in kwargs.items() if value is not None}
