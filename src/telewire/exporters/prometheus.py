"""``prometheus``: expose metrics on an HTTP endpoint for Prometheus to scrape."""

from __future__ import annotations

import logging
import threading
from typing import Any

from opentelemetry.exporter.prometheus import PrometheusMetricReader
from prometheus_client import start_http_server
from pydantic import Field

from ..components import Component, ExporterConfig
from ..registry import EXPORTERS

logger = logging.getLogger(__name__)


class ServingPrometheusReader(PrometheusMetricReader):
    """A Prometheus reader that also owns the HTTP server exposing it.

    The server is started by :meth:`start`, not on construction, so a
    provider can be built before the process is ready to listen.
    """

    def __init__(self, host: str, port: int) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self._server: Any = None
        self._thread: threading.Thread | None = None
        self._closed = False
        self._mutex = threading.Lock()

    def start(self) -> None:
        with self._mutex:
            if self._closed:
                raise RuntimeError("prometheus reader already shut down")
            if self._server is not None:
                return
            self._server, self._thread = start_http_server(self.port, addr=self.host)
            logger.info("Serving Prometheus metrics on %s:%d", self.host, self.bound_port)

    @property
    def bound_port(self) -> int:
        if self._server is None:
            return self.port
        return self._server.server_address[1]

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: Any) -> None:
        with self._mutex:
            if self._closed:
                return
            self._closed = True
            server, self._server = self._server, None
        if server is not None:
            server.shutdown()
            server.server_close()
        super().shutdown(timeout_millis=timeout_millis, **kwargs)


@EXPORTERS.register("prometheus")
class PrometheusExporterConfig(ExporterConfig):
    host: str = "0.0.0.0"
    port: int = Field(default=9464, ge=0, le=65535)

    async def metric_reader(self) -> Component:
        reader = ServingPrometheusReader(self.host, self.port)
        return Component(reader, start=reader.start)
