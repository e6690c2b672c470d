"""Composite ``type[/name]`` identifiers for processors, exporters and providers."""

from __future__ import annotations

import re
import unicodedata
from typing import Any

from pydantic_core import core_schema

from .exceptions import InvalidIdentifierError

SEPARATOR = "/"

# A type starts with an ASCII letter and continues with ASCII letters,
# digits or '_', 63 characters at most.
_TYPE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,62}$")

# Unicode separators (Z*), control/format (C*) and symbols (S*).
_FORBIDDEN_NAME_CATEGORIES = ("Z", "C", "S")


def is_valid_type(text: str) -> bool:
    return _TYPE_PATTERN.match(text) is not None


def is_valid_name(text: str) -> bool:
    if not text:
        return False
    return not any(unicodedata.category(ch)[0] in _FORBIDDEN_NAME_CATEGORIES for ch in text)


class Identifier(str):
    """An immutable ``type[/name]`` key.

    Identifiers behave like the string they were parsed into: they hash,
    compare and sort as strings, so ``config.exporters["otlp"]`` works with
    a plain string key.
    """

    __slots__ = ()

    def __new__(cls, text: str) -> "Identifier":
        if isinstance(text, Identifier):
            return text
        return str.__new__(cls, _normalize(str(text)))

    @classmethod
    def parse(cls, text: str) -> "Identifier":
        return cls(text)

    @property
    def type(self) -> str:
        return self.partition(SEPARATOR)[0]

    @property
    def name(self) -> str:
        return self.partition(SEPARATOR)[2]

    def with_name(self, name: str) -> "Identifier":
        if not name:
            return Identifier(self.type)
        return Identifier(f"{self.type}{SEPARATOR}{name}")

    def __repr__(self) -> str:
        return f"Identifier({str(self)!r})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls.parse,
            core_schema.str_schema(),
            serialization=core_schema.to_string_ser_schema(),
        )


def _normalize(text: str) -> str:
    type_part, sep, name_part = text.partition(SEPARATOR)
    type_part = type_part.strip()
    if not type_part:
        if sep:
            raise InvalidIdentifierError(text, f"the part before {SEPARATOR} should not be empty")
        raise InvalidIdentifierError(text, "identifier must not be empty")
    if not is_valid_type(type_part):
        raise InvalidIdentifierError(text, f"invalid character(s) in type {type_part!r}")

    if not sep:
        return type_part

    name_part = name_part.strip()
    if not name_part:
        raise InvalidIdentifierError(text, f"the part after {SEPARATOR} should not be empty")
    if not is_valid_name(name_part):
        raise InvalidIdentifierError(text, f"invalid character(s) in name {name_part!r}")
    return f"{type_part}{SEPARATOR}{name_part}"
