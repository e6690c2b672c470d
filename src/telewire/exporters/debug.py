"""``debug``: print every span, metric and log record to the console."""

from __future__ import annotations

import sys
from typing import IO, Literal

from opentelemetry.sdk._logs.export import ConsoleLogExporter
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from ..components import Component, ExporterConfig
from ..registry import EXPORTERS


@EXPORTERS.register("debug")
class DebugExporterConfig(ExporterConfig):
    output: Literal["stdout", "stderr"] = "stdout"

    def stream(self) -> IO[str]:
        return sys.stderr if self.output == "stderr" else sys.stdout

    async def span_exporter(self) -> Component:
        return Component(ConsoleSpanExporter(out=self.stream()))

    async def metric_exporter(self) -> Component:
        return Component(ConsoleMetricExporter(out=self.stream()))

    async def log_exporter(self) -> Component:
        return Component(ConsoleLogExporter(out=self.stream()))
