"""Route standard library logging into a resolved OpenTelemetry logger provider.

Console output keeps working as before; every record is additionally
emitted through the logger provider, with the active trace context.
"""

from __future__ import annotations

import logging

from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler

LOG_FORMAT = (
    "%(asctime)s %(levelname)s [%(name)s] "
    "[trace_id=%(otelTraceID)s span_id=%(otelSpanID)s] "
    "%(message)s"
)


class OTelFormatter(logging.Formatter):
    """Formatter for :data:`LOG_FORMAT` that tolerates records without trace context."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "otelTraceID"):
            record.otelTraceID = "0" * 32
        if not hasattr(record, "otelSpanID"):
            record.otelSpanID = "0" * 16
        return super().format(record)


def configure_otel_logging(
    logger_provider: LoggerProvider | None = None,
    log_level: str = "INFO",
) -> LoggingHandler | None:
    """Configure root logging with OpenTelemetry integration.

    Adds a console handler printing trace and span ids and, when a logger
    provider is given, a ``LoggingHandler`` forwarding records to it. Existing
    handlers are left in place.

    Args:
        logger_provider: Provider the records are emitted through, usually
            ``await resolver.logger(...)``.
        log_level: Level of the root logger (default: INFO).

    Returns:
        The OpenTelemetry handler, so callers can remove it again on shutdown.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(OTelFormatter(LOG_FORMAT))
    root_logger.addHandler(console)

    if logger_provider is None:
        return None
    otel_handler = LoggingHandler(level=level, logger_provider=logger_provider)
    root_logger.addHandler(otel_handler)
    return otel_handler
