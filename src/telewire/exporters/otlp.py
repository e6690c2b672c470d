"""``otlp``: send telemetry to a collector over OTLP/gRPC.

Example::

    exporters:
      otlp:
        endpoint: collector:4317
        compression: gzip
        headers:
          authorization: Bearer ${TOKEN}
        tls:
          ca_file: /etc/ssl/collector-ca.pem
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, SecretStr

from ..components import Component, ComponentConfig, ExporterConfig
from ..registry import EXPORTERS
from ..utils import Duration, compact


class TLSConfig(ComponentConfig):
    """Client side transport security.

    Attributes:
        insecure: Disable transport security entirely (plaintext).
        ca_file: CA bundle used to verify the server. The system roots are
            used when unset.
        cert_file: Client certificate for mutual TLS.
        key_file: Private key of ``cert_file``.
    """

    insecure: bool = False
    ca_file: Path | None = None
    cert_file: Path | None = None
    key_file: Path | None = None

    def grpc_credentials(self) -> Any:
        """Build channel credentials for the gRPC exporters, ``None`` for the defaults."""
        if self.insecure or not (self.ca_file or self.cert_file or self.key_file):
            return None
        import grpc

        return grpc.ssl_channel_credentials(
            root_certificates=_read(self.ca_file),
            private_key=_read(self.key_file),
            certificate_chain=_read(self.cert_file),
        )


def _read(path: Path | None) -> bytes | None:
    if path is None:
        return None
    return path.read_bytes()


class OTLPBaseConfig(ExporterConfig):
    """Fields shared by the gRPC and HTTP flavours of OTLP."""

    endpoint: str | None = None
    headers: dict[str, SecretStr] = Field(default_factory=dict)
    timeout: Duration | None = None
    tls: TLSConfig = Field(default_factory=TLSConfig)

    def header_values(self) -> dict[str, str] | None:
        if not self.headers:
            return None
        return {key: value.get_secret_value() for key, value in self.headers.items()}

    def timeout_seconds(self) -> float | None:
        if self.timeout is None:
            return None
        return self.timeout.total_seconds()


@EXPORTERS.register("otlp")
class OTLPExporterConfig(OTLPBaseConfig):
    compression: Literal["gzip", "none"] | None = None

    def exporter_options(self) -> dict[str, Any]:
        import grpc

        compression = None
        if self.compression == "gzip":
            compression = grpc.Compression.Gzip
        elif self.compression == "none":
            compression = grpc.Compression.NoCompression
        return compact(
            endpoint=self.endpoint,
            insecure=True if self.tls.insecure else None,
            credentials=self.tls.grpc_credentials(),
            headers=self.header_values(),
            timeout=self.timeout_seconds(),
            compression=compression,
        )

    async def span_exporter(self) -> Component:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return Component(OTLPSpanExporter(**self.exporter_options()))

    async def metric_exporter(self) -> Component:
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return Component(OTLPMetricExporter(**self.exporter_options()))

    async def log_exporter(self) -> Component:
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

        return Component(OTLPLogExporter(**self.exporter_options()))
