"""Top-level configuration document and its decode orchestration.

A document looks like::

    enabled: true
    processors:
      batcher:
        schedule_delay: 1s
    exporters:
      otlp:
        endpoint: localhost:4317
    providers:
      tracer:
        processors: [batcher]
        exporters: [otlp]

Processor and exporter entries are decoded through registries keyed by the
type part of their identifier. Entries that fail to decode are dropped and
reported together; the rest of the document is still usable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .components import ExporterConfig, ProcessorConfig
from .exceptions import (
    AggregateError,
    ComponentDecodeError,
    ConfigDecodeError,
    ConfigError,
    InvalidIdentifierError,
    UnknownTypeError,
)
from .identifier import Identifier
from .registry import EXPORTERS, PROCESSORS, Registry
from .utils import compose, construct, is_null, mapping_items, to_node

logger = logging.getLogger(__name__)

_KNOWN_KEYS = ("enabled", "processors", "exporters", "providers")


class ProviderConfig(BaseModel):
    """Processors and exporters a named provider is built from, in order."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    processors: list[Identifier] = Field(default_factory=list)
    exporters: list[Identifier] = Field(default_factory=list)


@dataclass
class Config:
    enabled: bool = False
    processors: dict[Identifier, ProcessorConfig] = field(default_factory=dict)
    exporters: dict[Identifier, ExporterConfig] = field(default_factory=dict)
    providers: dict[Identifier, ProviderConfig] = field(default_factory=dict)

    @classmethod
    def decode(
        cls,
        node: yaml.Node | None,
        *,
        processors: Registry[ProcessorConfig] | None = None,
        exporters: Registry[ExporterConfig] | None = None,
    ) -> "Config":
        """Decode a composed YAML document.

        Args:
            node: Root node of the document. ``None`` or a null node decodes
                as a disabled config.
            processors: Processor registry, defaults to :data:`PROCESSORS`.
            exporters: Exporter registry, defaults to :data:`EXPORTERS`.

        Raises:
            ConfigError: The document does not have the expected shape.
            ConfigDecodeError: Some processor or exporter entries could not
                be decoded. The partially decoded config is attached.
        """
        processor_registry = PROCESSORS if processors is None else processors
        exporter_registry = EXPORTERS if exporters is None else exporters

        if is_null(node):
            return cls()
        sections = _split_sections(node)

        enabled = _decode_enabled(sections.get("enabled"))
        if not enabled:
            logger.debug("Telemetry config is disabled")
            return cls()

        raw_processors = _identifier_map("processors", sections.get("processors"))
        raw_exporters = _identifier_map("exporters", sections.get("exporters"))
        providers = _decode_providers(sections.get("providers"))

        config = cls(enabled=True, providers=providers)
        processor_errors = _decode_entries(raw_processors, processor_registry, config.processors)
        exporter_errors = _decode_entries(raw_exporters, exporter_registry, config.exporters)

        errors = []
        if processor_errors:
            errors.append(AggregateError("processor", processor_errors))
        if exporter_errors:
            errors.append(AggregateError("exporter", exporter_errors))
        if errors:
            raise ConfigDecodeError(errors, config)
        return config

    @classmethod
    def from_mapping(cls, data: Any, **kwargs: Any) -> "Config":
        """Decode already constructed data, e.g. a dict loaded from JSON."""
        if data is None:
            return cls()
        return cls.decode(to_node(data), **kwargs)


def loads_config(text: str, **kwargs: Any) -> Config:
    try:
        node = compose(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc
    return Config.decode(node, **kwargs)


def load_config(path: str | Path, **kwargs: Any) -> Config:
    return loads_config(Path(path).read_text(encoding="utf-8"), **kwargs)


def _split_sections(node: yaml.Node) -> dict[str, yaml.Node]:
    try:
        items = list(mapping_items(node))
    except TypeError as exc:
        raise ConfigError(f"config: {exc}") from exc

    sections: dict[str, yaml.Node] = {}
    for key_node, value_node in items:
        key = construct(key_node)
        if key not in _KNOWN_KEYS:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        sections[key] = value_node
    return sections


def _decode_enabled(node: yaml.Node | None) -> bool:
    if is_null(node):
        return False
    value = construct(node)
    if not isinstance(value, bool):
        raise ConfigError(f"enabled: expected a bool, got {value!r}")
    return value


def _identifier_map(section: str, node: yaml.Node | None) -> dict[Identifier, yaml.Node]:
    if is_null(node):
        return {}
    try:
        items = list(mapping_items(node))
    except TypeError as exc:
        raise ConfigError(f"{section}: {exc}") from exc

    entries: dict[Identifier, yaml.Node] = {}
    for key_node, value_node in items:
        try:
            identifier = Identifier.parse(str(construct(key_node)))
        except InvalidIdentifierError as exc:
            raise ConfigError(f"{section}: {exc}") from exc
        if identifier in entries:
            raise ConfigError(f'{section}: duplicate entry "{identifier}"')
        entries[identifier] = value_node
    return entries


def _decode_providers(node: yaml.Node | None) -> dict[Identifier, ProviderConfig]:
    providers: dict[Identifier, ProviderConfig] = {}
    for identifier, value_node in _identifier_map("providers", node).items():
        data = construct(value_node)
        try:
            providers[identifier] = ProviderConfig.model_validate({} if data is None else data)
        except ValidationError as exc:
            raise ConfigError(f'providers: "{identifier}": {exc}') from exc
    return providers


def _decode_entries(
    raw: dict[Identifier, yaml.Node],
    registry: Registry[Any],
    target: dict[Identifier, Any],
) -> list[Exception]:
    errors: list[Exception] = []
    for identifier, node in raw.items():
        decoder = registry.get(identifier.type)
        if decoder is None:
            errors.append(UnknownTypeError(identifier))
            continue
        try:
            target[identifier] = decoder(node)
        except Exception as exc:
            error = ComponentDecodeError(identifier, exc)
            error.__cause__ = exc
            errors.append(error)
    return errors
