"""``batcher``: export spans and log records in batches from a worker thread."""

from __future__ import annotations

from typing import ClassVar

from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pydantic import AliasChoices, Field, PositiveInt

from ..components import ProcessorConfig, ResolveContext, Signal
from ..registry import PROCESSORS
from ..utils import Duration, compact, millis


@PROCESSORS.register("batcher")
class BatcherConfig(ProcessorConfig):
    """Options of the SDK batch processors.

    Unset options fall back to the SDK defaults, which honour the
    ``OTEL_BSP_*`` and ``OTEL_BLRP_*`` environment variables.
    """

    signals: ClassVar[frozenset[Signal]] = frozenset({Signal.TRACE, Signal.LOG})

    max_queue_size: PositiveInt | None = None
    max_export_batch_size: PositiveInt | None = None
    schedule_delay: Duration | None = Field(
        default=None,
        validation_alias=AliasChoices("schedule_delay", "batch_timeout", "export_interval"),
    )
    export_timeout: Duration | None = None

    def processor_options(self) -> dict[str, int]:
        return compact(
            max_queue_size=self.max_queue_size,
            max_export_batch_size=self.max_export_batch_size,
            schedule_delay_millis=millis(self.schedule_delay),
            export_timeout_millis=millis(self.export_timeout),
        )

    async def contribute(self, ctx: ResolveContext) -> None:
        batch_cls = BatchSpanProcessor if ctx.signal is Signal.TRACE else BatchLogRecordProcessor
        options = self.processor_options()
        for exporter in ctx.take_exporters():
            ctx.options.components.append(batch_cls(exporter, **options))
