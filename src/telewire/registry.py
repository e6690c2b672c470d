"""Type registries that decode raw component nodes into typed configs.

A registry maps the ``type`` part of a component identifier to a decoder,
a callable turning a composed YAML node into the component's config
object. The config decoder only asks the registry, so new processor or
exporter kinds can be added by registering them:

    @EXPORTERS.register("stdout")
    class StdoutExporterConfig(ExporterConfig):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, Iterator, Mapping, TypeVar

import yaml

from .exceptions import InvalidIdentifierError
from .identifier import is_valid_type
from .utils import construct

if TYPE_CHECKING:
    from .components import ExporterConfig, ProcessorConfig

T = TypeVar("T")
M = TypeVar("M")

Decoder = Callable[[yaml.Node], T]


class ModelDecoder(Generic[T]):
    """Decode a node by constructing it and validating it with a pydantic model.

    An empty node (``otlp:`` with nothing after it) validates as ``{}`` so
    the model's defaults apply.
    """

    def __init__(self, model: type[T]) -> None:
        self.model = model

    def __call__(self, node: yaml.Node | None) -> T:
        data = None if node is None else construct(node)
        if data is None:
            data = {}
        return self.model.model_validate(data)  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"ModelDecoder({self.model.__name__})"


class Registry(Generic[T]):
    """Mapping from a component type name to its decoder."""

    def __init__(self, entries: Mapping[str, Decoder[T]] | None = None) -> None:
        self._decoders: dict[str, Decoder[T]] = {}
        for type_name, decoder in (entries or {}).items():
            self.set(type_name, decoder)

    def get(self, type_name: str) -> Decoder[T] | None:
        return self._decoders.get(type_name)

    def set(self, type_name: str, decoder: Decoder[T]) -> None:
        if not is_valid_type(type_name):
            raise InvalidIdentifierError(type_name, "not a valid component type")
        self._decoders[type_name] = decoder

    def register(self, type_name: str) -> Callable[[type[M]], type[M]]:
        """Class decorator registering a pydantic model under ``type_name``."""

        def decorator(model: type[M]) -> type[M]:
            self.set(type_name, ModelDecoder(model))
            return model

        return decorator

    def types(self) -> list[str]:
        return sorted(self._decoders)

    def copy(self) -> "Registry[T]":
        return Registry(self._decoders)

    @classmethod
    def merge(cls, *registries: "Registry[T] | None") -> "Registry[T]":
        """Union of ``registries``; on a type collision the later one wins."""
        merged: Registry[T] = cls()
        for registry in registries:
            if registry is not None:
                merged._decoders.update(registry._decoders)
        return merged

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._decoders

    def __iter__(self) -> Iterator[str]:
        return iter(self._decoders)

    def __len__(self) -> int:
        return len(self._decoders)

    def __repr__(self) -> str:
        return f"Registry({self.types()!r})"


# Process-wide defaults. Built-in components register here on import;
# tests and embedders pass their own registries to ``Config.decode``.
PROCESSORS: "Registry[ProcessorConfig]" = Registry()
EXPORTERS: "Registry[ExporterConfig]" = Registry()
