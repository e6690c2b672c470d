"""Contracts between the resolver and the pluggable processors and exporters.

Processors contribute options to a provider under construction. Exporters
produce the sinks a provider writes to, optionally with a deferred start
that the resolver runs from :meth:`Resolver.start`. The provider itself is
built from the accumulated :class:`ProviderOptions` by a provider factory;
:func:`build_provider` is the OpenTelemetry SDK one.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar

from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import SimpleLogRecordProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from pydantic import BaseModel, ConfigDict

from .identifier import Identifier

StartFunc = Callable[[], "Awaitable[None] | None"]


class Signal(str, Enum):
    """Telemetry signal a provider serves."""

    TRACE = "trace"
    METRIC = "metric"
    LOG = "log"

    @property
    def provider_type(self) -> str:
        """Identifier type of the providers serving this signal."""
        return _PROVIDER_TYPES[self]


_PROVIDER_TYPES = {
    Signal.TRACE: "tracer",
    Signal.METRIC: "meter",
    Signal.LOG: "logger",
}


@dataclass
class Component:
    """An instantiated exporter (or metric reader) and its optional deferred start."""

    value: Any
    start: StartFunc | None = None


@dataclass
class ProviderOptions:
    """Options accumulated for one provider before it is constructed.

    Attributes:
        resource: Resource attached to every record the provider emits.
        components: Span processors, log record processors or metric
            readers, depending on the signal, in attachment order.
        settings: Extra keyword arguments for the provider constructor,
            e.g. ``sampler`` for tracer providers or ``views`` for meters.
    """

    resource: Resource | None = None
    components: list[Any] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class ResolveContext:
    """State shared by the processors of one provider while it is being built."""

    signal: Signal
    provider: Identifier
    exporters: list[Any]
    options: ProviderOptions
    touched: bool = False

    def take_exporters(self) -> list[Any]:
        """Return the provider's resolved exporters and mark them as wired.

        Once any processor took the exporters, the resolver does not attach
        them again with the simple default wiring.
        """
        self.touched = True
        return list(self.exporters)


class ComponentConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class ProcessorConfig(ComponentConfig):
    """Base class of processor configs.

    Subclasses list the signals they handle in ``signals``; for any other
    signal the processor is skipped.
    """

    signals: ClassVar[frozenset[Signal]] = frozenset()

    def supports(self, signal: Signal) -> bool:
        return signal in self.signals

    @abstractmethod
    async def contribute(self, ctx: ResolveContext) -> None:
        """Add this processor's options for ``ctx.signal`` to ``ctx.options``."""


class ExporterConfig(ComponentConfig):
    """Base class of exporter configs.

    Each hook returns ``None`` when the exporter does not serve that signal.
    For metrics the resolver asks :meth:`metric_exporter` first and falls
    back to :meth:`metric_reader`.
    """

    async def span_exporter(self) -> Component | None:
        return None

    async def metric_exporter(self) -> Component | None:
        return None

    async def metric_reader(self) -> Component | None:
        return None

    async def log_exporter(self) -> Component | None:
        return None


def simple_component(signal: Signal, exporter: Any) -> Any:
    """Attach ``exporter`` without batching: the default wiring of a provider."""
    if signal is Signal.TRACE:
        return SimpleSpanProcessor(exporter)
    if signal is Signal.LOG:
        return SimpleLogRecordProcessor(exporter)
    return PeriodicExportingMetricReader(exporter)


def build_provider(signal: Signal, options: ProviderOptions) -> Any:
    """Construct the SDK provider for ``signal`` from accumulated options."""
    kwargs = dict(options.settings)
    if options.resource is not None:
        kwargs["resource"] = options.resource

    if signal is Signal.TRACE:
        tracer_provider = TracerProvider(**kwargs)
        for processor in options.components:
            tracer_provider.add_span_processor(processor)
        return tracer_provider

    if signal is Signal.METRIC:
        return MeterProvider(metric_readers=list(options.components), **kwargs)

    logger_provider = LoggerProvider(**kwargs)
    for processor in options.components:
        logger_provider.add_log_record_processor(processor)
    return logger_provider
