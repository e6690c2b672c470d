"""``otlphttp``: send telemetry to a collector over OTLP/HTTP (protobuf)."""

from __future__ import annotations

from typing import Any, Literal

from ..components import Component
from ..registry import EXPORTERS
from ..utils import compact
from .otlp import OTLPBaseConfig

_SIGNAL_PATHS = {
    "traces": "/v1/traces",
    "metrics": "/v1/metrics",
    "logs": "/v1/logs",
}


@EXPORTERS.register("otlphttp")
class OTLPHttpExporterConfig(OTLPBaseConfig):
    """OTLP over HTTP.

    ``endpoint`` is the collector's base URL (``http://collector:4318``);
    the per-signal path is appended to it. When unset, the exporters read
    ``OTEL_EXPORTER_OTLP_*`` from the environment. Whether TLS is used
    follows the URL scheme; ``tls.insecure`` has no effect here.
    """

    compression: Literal["gzip", "deflate", "none"] | None = None

    def signal_endpoint(self, signal: str) -> str | None:
        if self.endpoint is None:
            return None
        path = _SIGNAL_PATHS[signal]
        base = self.endpoint.rstrip("/")
        if base.endswith(path):
            return base
        return base + path

    def exporter_options(self, signal: str) -> dict[str, Any]:
        from opentelemetry.exporter.otlp.proto.http import Compression

        compression = None
        if self.compression is not None:
            compression = {
                "gzip": Compression.Gzip,
                "deflate": Compression.Deflate,
                "none": Compression.NoCompression,
            }[self.compression]
        tls = self.tls
        return compact(
            endpoint=self.signal_endpoint(signal),
            certificate_file=str(tls.ca_file) if tls.ca_file else None,
            client_certificate_file=str(tls.cert_file) if tls.cert_file else None,
            client_key_file=str(tls.key_file) if tls.key_file else None,
            headers=self.header_values(),
            timeout=self.timeout_seconds(),
            compression=compression,
        )

    async def span_exporter(self) -> Component:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

        return Component(OTLPSpanExporter(**self.exporter_options("traces")))

    async def metric_exporter(self) -> Component:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter

        return Component(OTLPMetricExporter(**self.exporter_options("metrics")))

    async def log_exporter(self) -> Component:
        from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter

        return Component(OTLPLogExporter(**self.exporter_options("logs")))
