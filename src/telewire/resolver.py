"""Lazily build named telemetry providers from a decoded :class:`Config`.

Exporters are shared between providers: an exporter identifier used by
several providers of the same signal is instantiated once and its deferred
start (if any) runs once. Providers are built on first request and cached.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from .components import (
    Component,
    ExporterConfig,
    ProviderOptions,
    ResolveContext,
    Signal,
    build_provider,
    simple_component,
)
from .config import Config
from .exceptions import (
    ComponentShutdownError,
    ConstructionError,
    ExporterNotFoundError,
    ProcessorNotFoundError,
    ProviderNotFoundError,
    ShutdownError,
    StartError,
)
from .identifier import Identifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProviderFactory = Callable[[Signal, ProviderOptions], Any]
SimpleWiring = Callable[[Signal, Any], Any]


@dataclass
class _ExporterEntry:
    identifier: Identifier
    signal: Signal
    component: Component
    reader: bool = False
    started: bool = False
    closed: bool = False


class Resolver:
    """Builds providers from a config and owns the lifecycle of their exporters.

    Example::

        resolver = Resolver(load_config("telemetry.yaml"))
        tracer_provider = await resolver.tracer("api")
        await resolver.start()
        ...
        await resolver.shutdown()

    A resolver is bound to the event loop it is used from.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        provider_factory: ProviderFactory = build_provider,
        simple_wiring: SimpleWiring = simple_component,
    ) -> None:
        self.config = config if config is not None else Config()
        self._provider_factory = provider_factory
        self._simple_wiring = simple_wiring
        self._lock = asyncio.Lock()
        self._exporters: dict[tuple[Identifier, Signal], _ExporterEntry] = {}
        self._providers: dict[Identifier, Any] = {}
        self._owned: dict[Identifier, list[_ExporterEntry]] = {}
        self._closed_providers: set[Identifier] = set()

    async def tracer(self, name: str = "", timeout: float | None = None) -> Any:
        return await self.provider(Signal.TRACE, name, timeout=timeout)

    async def meter(self, name: str = "", timeout: float | None = None) -> Any:
        return await self.provider(Signal.METRIC, name, timeout=timeout)

    async def logger(self, name: str = "", timeout: float | None = None) -> Any:
        return await self.provider(Signal.LOG, name, timeout=timeout)

    async def provider(
        self, signal: Signal | str, name: str = "", timeout: float | None = None
    ) -> Any:
        """Return the provider ``<signal type>[/name]``, building it on first use.

        Args:
            signal: Signal the provider serves.
            name: Provider name; empty selects the unnamed provider.
            timeout: Seconds to wait for the build, ``None`` waits forever.

        Raises:
            ProviderNotFoundError: No such provider in the config.
            ExporterNotFoundError: A referenced exporter is not configured.
            ProcessorNotFoundError: A referenced processor is not configured.
            ConstructionError: An exporter, processor or the provider failed
                to build.
            TimeoutError: ``timeout`` expired.
        """
        signal = Signal(signal)
        identifier = Identifier(signal.provider_type).with_name(name)
        return await _wait(self._get_provider(signal, identifier), timeout)

    async def start(self, timeout: float | None = None) -> None:
        """Run the deferred start of every resolved exporter not started yet.

        On failure or cancellation the exporters started by this call are
        shut down again, in reverse order, before the error propagates.

        Raises:
            StartError: A deferred start failed.
            TimeoutError: ``timeout`` expired.
        """
        await _wait(self._start(), timeout)

    async def shutdown(self, timeout: float | None = None) -> None:
        """Shut down every built provider, then every exporter no provider released.

        A provider's shutdown reaches the exporters wired into it, so those
        are only shut down directly when their provider failed to shut down,
        which names the failing exporter. Exporters of failed builds are
        always shut down directly. All components are attempted even when
        some of them fail, and none is attempted twice by the resolver.

        Raises:
            ShutdownError: One or more components failed to shut down.
            TimeoutError: ``timeout`` expired.
        """
        await _wait(self._shutdown(), timeout)

    @property
    def providers(self) -> dict[Identifier, Any]:
        """Providers built so far."""
        return dict(self._providers)

    async def _get_provider(self, signal: Signal, identifier: Identifier) -> Any:
        async with self._lock:
            if identifier in self._providers:
                return self._providers[identifier]

            provider_config = self.config.providers.get(identifier)
            if provider_config is None:
                raise ProviderNotFoundError(identifier)

            entries = []
            exporters = []
            readers = []
            for exporter_id in provider_config.exporters:
                entry = await self._resolve_exporter(exporter_id, signal)
                entries.append(entry)
                if entry.reader:
                    readers.append(entry.component.value)
                else:
                    exporters.append(entry.component.value)

            # Metric readers pull from the provider themselves, processors never wrap them.
            ctx = ResolveContext(
                signal=signal,
                provider=identifier,
                exporters=exporters,
                options=ProviderOptions(components=readers),
            )
            for processor_id in provider_config.processors:
                processor = self.config.processors.get(processor_id)
                if processor is None:
                    raise ProcessorNotFoundError(processor_id)
                if not processor.supports(signal):
                    logger.debug(
                        "Skipping processor %s for %s: signal %s not supported",
                        processor_id,
                        identifier,
                        signal.value,
                    )
                    continue
                try:
                    await processor.contribute(ctx)
                except Exception as exc:
                    raise ConstructionError(processor_id, exc) from exc

            if not ctx.touched:
                for exporter in exporters:
                    ctx.options.components.append(self._simple_wiring(signal, exporter))

            try:
                provider = self._provider_factory(signal, ctx.options)
            except Exception as exc:
                raise ConstructionError(identifier, exc) from exc

            self._providers[identifier] = provider
            self._owned[identifier] = entries
            logger.debug(
                "Built provider %s with exporters %s",
                identifier,
                [str(exporter_id) for exporter_id in provider_config.exporters],
            )
            return provider

    async def _resolve_exporter(self, identifier: Identifier, signal: Signal) -> _ExporterEntry:
        key = (identifier, signal)
        entry = self._exporters.get(key)
        if entry is not None:
            return entry

        config = self.config.exporters.get(identifier)
        if config is None:
            raise ExporterNotFoundError(identifier)

        try:
            component, reader = await _instantiate(config, signal)
        except Exception as exc:
            raise ConstructionError(identifier, exc) from exc
        if component is None:
            raise ConstructionError(identifier, f"exporter does not support {signal.value} signal")

        entry = _ExporterEntry(identifier, signal, component, reader=reader)
        self._exporters[key] = entry
        logger.debug("Resolved exporter %s for %s", identifier, signal.value)
        return entry

    async def _start(self) -> None:
        async with self._lock:
            started: list[_ExporterEntry] = []
            for entry in list(self._exporters.values()):
                if entry.started or entry.component.start is None:
                    continue
                try:
                    if entry.closed:
                        raise RuntimeError("exporter already shut down")
                    await _call(entry.component.start)
                except asyncio.CancelledError:
                    await self._rollback(started)
                    raise
                except Exception as exc:
                    rollback_errors = await self._rollback(started)
                    raise StartError(entry.identifier, exc, rollback_errors) from exc
                entry.started = True
                started.append(entry)
                logger.info("Started exporter %s (%s)", entry.identifier, entry.signal.value)

    async def _rollback(self, started: list[_ExporterEntry]) -> list[BaseException]:
        errors: list[BaseException] = []
        for entry in reversed(started):
            error = await self._close_exporter(entry)
            if error is not None:
                logger.warning("Rollback of exporter %s failed: %s", entry.identifier, error)
                errors.append(error)
        return errors

    async def _shutdown(self) -> None:
        async with self._lock:
            errors: list[BaseException] = []
            for identifier, provider in self._providers.items():
                if identifier in self._closed_providers:
                    continue
                self._closed_providers.add(identifier)
                try:
                    await _shutdown_component(provider)
                except Exception as exc:
                    errors.append(ComponentShutdownError(identifier, exc))
                    continue
                for entry in self._owned.get(identifier, ()):
                    entry.closed = True

            for entry in self._exporters.values():
                error = await self._close_exporter(entry)
                if error is not None:
                    errors.append(error)

            if errors:
                raise ShutdownError(errors)
            logger.info(
                "Shut down %d provider(s) and %d exporter(s)",
                len(self._providers),
                len(self._exporters),
            )

    async def _close_exporter(self, entry: _ExporterEntry) -> ComponentShutdownError | None:
        if entry.closed:
            return None
        entry.closed = True
        try:
            await _shutdown_component(entry.component.value)
        except Exception as exc:
            return ComponentShutdownError(entry.identifier, exc)
        return None


async def _instantiate(config: ExporterConfig, signal: Signal) -> tuple[Component | None, bool]:
    """Return the exporter component for ``signal`` and whether it is a metric reader."""
    if signal is Signal.TRACE:
        return await config.span_exporter(), False
    if signal is Signal.LOG:
        return await config.log_exporter(), False
    component = await config.metric_exporter()
    if component is not None:
        return component, False
    return await config.metric_reader(), True


async def _call(func: Callable[[], Any]) -> Any:
    if inspect.iscoroutinefunction(func):
        return await func()
    # Sync starts may block (binding sockets, dialing), keep the loop free for timeouts.
    result = await asyncio.to_thread(func)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _shutdown_component(component: Any) -> None:
    shutdown = getattr(component, "shutdown", None)
    if shutdown is None:
        return
    if inspect.iscoroutinefunction(shutdown):
        await shutdown()
        return
    # SDK shutdowns flush pending exports and may block on the network.
    result = await asyncio.to_thread(shutdown)
    if inspect.isawaitable(result):
        await result


async def _wait(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout)
