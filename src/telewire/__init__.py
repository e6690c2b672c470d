"""Declarative OpenTelemetry setup for telewire.

A YAML document names processors, exporters and providers; a
:class:`Resolver` builds tracer, meter and logger providers from it on
demand and manages the lifecycle of their exporters.
"""

from __future__ import annotations

from . import exporters, processors
from .attribute import Attribute, TypedValue, ValueKind, decode_attribute_value
from .components import (
    Component,
    ExporterConfig,
    ProcessorConfig,
    ProviderOptions,
    ResolveContext,
    Signal,
)
from .config import Config, ProviderConfig, load_config, loads_config
from .exceptions import (
    AggregateError,
    ConfigDecodeError,
    ConfigError,
    ConstructionError,
    InvalidIdentifierError,
    ShutdownError,
    StartError,
    TelewireError,
)
from .identifier import Identifier
from .registry import EXPORTERS, PROCESSORS, Registry
from .resolver import Resolver

__all__ = [
    "AggregateError",
    "Attribute",
    "Component",
    "Config",
    "ConfigDecodeError",
    "ConfigError",
    "ConstructionError",
    "EXPORTERS",
    "ExporterConfig",
    "Identifier",
    "InvalidIdentifierError",
    "PROCESSORS",
    "ProcessorConfig",
    "ProviderConfig",
    "ProviderOptions",
    "Registry",
    "ResolveContext",
    "Resolver",
    "ShutdownError",
    "Signal",
    "StartError",
    "TelewireError",
    "TypedValue",
    "ValueKind",
    "decode_attribute_value",
    "exporters",
    "load_config",
    "loads_config",
    "processors",
]
