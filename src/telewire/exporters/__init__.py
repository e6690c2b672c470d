"""Built-in exporters. Importing this package registers them in :data:`EXPORTERS`."""

from __future__ import annotations

from .debug import DebugExporterConfig
from .otlp import OTLPExporterConfig, TLSConfig
from .otlphttp import OTLPHttpExporterConfig
from .prometheus import PrometheusExporterConfig

__all__ = [
    "DebugExporterConfig",
    "OTLPExporterConfig",
    "OTLPHttpExporterConfig",
    "PrometheusExporterConfig",
    "TLSConfig",
]
