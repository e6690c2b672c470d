import asyncio
import time
from typing import Any, ClassVar, Literal

import pytest

from telewire.components import Component, ExporterConfig, ProcessorConfig, ResolveContext, Signal
from telewire.config import loads_config
from telewire.registry import ModelDecoder, Registry
from telewire.resolver import Resolver


class Recorder:
    """Collects what the fake components were asked to do, in order."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.built: list[tuple[str, str]] = []

    def count(self, kind: str, label: str) -> int:
        return self.events.count((kind, label))


RECORDER = Recorder()


class FakeExporter:
    def __init__(self, label: str, fail_shutdown: bool = False) -> None:
        self.label = label
        self.fail_shutdown = fail_shutdown

    def start(self) -> None:
        RECORDER.events.append(("start", self.label))

    async def start_async(self) -> None:
        await asyncio.sleep(0)
        RECORDER.events.append(("start", self.label))

    def start_failing(self) -> None:
        RECORDER.events.append(("start", self.label))
        raise RuntimeError(f"{self.label} cannot listen")

    async def start_hanging(self) -> None:
        RECORDER.events.append(("start", self.label))
        await asyncio.sleep(3600)

    def start_blocking(self) -> None:
        RECORDER.events.append(("start", self.label))
        time.sleep(0.5)

    def shutdown(self) -> None:
        RECORDER.events.append(("shutdown", self.label))
        if self.fail_shutdown:
            raise RuntimeError(f"{self.label} refused to stop")


class FakeExporterConfig(ExporterConfig):
    label: str
    start_mode: Literal["none", "sync", "async", "fail", "hang", "block"] = "none"
    fail_shutdown: bool = False
    fail_build: bool = False
    reader: bool = False
    signals: list[Literal["trace", "metric", "log"]] = ["trace", "metric", "log"]

    async def _make(self, signal: str) -> Component | None:
        if signal not in self.signals:
            return None
        if self.fail_build:
            raise RuntimeError(f"{self.label} is misconfigured")
        RECORDER.built.append((self.label, signal))
        exporter = FakeExporter(self.label, self.fail_shutdown)
        start = {
            "none": None,
            "sync": exporter.start,
            "async": exporter.start_async,
            "fail": exporter.start_failing,
            "hang": exporter.start_hanging,
            "block": exporter.start_blocking,
        }[self.start_mode]
        return Component(exporter, start)

    async def span_exporter(self) -> Component | None:
        return await self._make("trace")

    async def metric_exporter(self) -> Component | None:
        if self.reader:
            return None
        return await self._make("metric")

    async def metric_reader(self) -> Component | None:
        if not self.reader:
            return None
        return await self._make("metric")

    async def log_exporter(self) -> Component | None:
        return await self._make("log")


class TagProcessorConfig(ProcessorConfig):
    """Records its label in the provider settings; optionally wraps the exporters."""

    signals: ClassVar[frozenset[Signal]] = frozenset(Signal)

    label: str = "tag"
    take: bool = False
    fail: bool = False

    async def contribute(self, ctx: ResolveContext) -> None:
        if self.fail:
            raise ValueError(f"{self.label} rejected {ctx.provider}")
        ctx.options.settings.setdefault("tags", []).append(self.label)
        if self.take:
            for exporter in ctx.take_exporters():
                ctx.options.components.append(("wrapped", self.label, exporter))


class TraceOnlyProcessorConfig(TagProcessorConfig):
    signals: ClassVar[frozenset[Signal]] = frozenset({Signal.TRACE})


class FakeProvider:
    """Shuts down its components like the SDK providers do, continuing past failures."""

    def __init__(self, signal: Signal, options: Any) -> None:
        self.signal = signal
        self.options = options
        self.shutdown_calls = 0

    def shutdown(self) -> None:
        self.shutdown_calls += 1
        RECORDER.events.append(("shutdown", f"provider:{self.signal.value}"))
        errors = []
        for component in self.options.components:
            exporter = component[2] if isinstance(component, tuple) else component
            try:
                exporter.shutdown()
            except Exception as exc:
                errors.append(str(exc))
        if errors:
            raise RuntimeError("; ".join(errors))


def fake_wiring(signal: Signal, exporter: Any) -> Any:
    return ("simple", signal.value, exporter)


@pytest.fixture(autouse=True)
def recorder():
    RECORDER.reset()
    yield RECORDER
    RECORDER.reset()


@pytest.fixture
def registries():
    processors = Registry()
    processors.set("tag", ModelDecoder(TagProcessorConfig))
    processors.set("traceonly", ModelDecoder(TraceOnlyProcessorConfig))
    exporters = Registry()
    exporters.set("fake", ModelDecoder(FakeExporterConfig))
    return processors, exporters


@pytest.fixture
def make_resolver(registries):
    """Build a resolver over fake components from a YAML document."""
    processors, exporters = registries

    def _make(text: str, **kwargs: Any) -> Resolver:
        config = loads_config(text, processors=processors, exporters=exporters)
        kwargs.setdefault("provider_factory", FakeProvider)
        kwargs.setdefault("simple_wiring", fake_wiring)
        return Resolver(config, **kwargs)

    return _make


def pytest_addoption(parser):
    parser.addoption(
        "--network",
        action="store_true",
        default=False,
        help="run tests that bind local sockets",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "network: mark test as binding local sockets")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--network"):
        skip_network = pytest.mark.skip(reason="need --network option to run")
        for item in items:
            if "network" in item.keywords:
                item.add_marker(skip_network)
