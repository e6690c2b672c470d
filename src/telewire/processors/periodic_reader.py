"""``periodic_reader``: push metrics to the provider's exporters on an interval."""

from __future__ import annotations

from typing import ClassVar

from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

from ..components import ProcessorConfig, ResolveContext, Signal
from ..registry import PROCESSORS
from ..utils import Duration, compact, millis


@PROCESSORS.register("periodic_reader")
class PeriodicReaderConfig(ProcessorConfig):
    signals: ClassVar[frozenset[Signal]] = frozenset({Signal.METRIC})

    interval: Duration | None = None
    timeout: Duration | None = None

    async def contribute(self, ctx: ResolveContext) -> None:
        options = compact(
            export_interval_millis=millis(self.interval),
            export_timeout_millis=millis(self.timeout),
        )
        for exporter in ctx.take_exporters():
            ctx.options.components.append(PeriodicExportingMetricReader(exporter, **options))
