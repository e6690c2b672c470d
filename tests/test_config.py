from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from telewire import load_config, loads_config
from telewire.attribute import Attribute, TypedValue, ValueKind
from telewire.config import Config, ProviderConfig
from telewire.exceptions import (
    AggregateError,
    ComponentDecodeError,
    ConfigDecodeError,
    ConfigError,
    UnknownTypeError,
)
from telewire.exporters import DebugExporterConfig, OTLPExporterConfig
from telewire.processors import BatcherConfig, PeriodicReaderConfig, ResourceConfig

FULL_CONFIG = """
enabled: true
processors:
  batcher:
    max_queue_size: 1
    max_export_batch_size: 1
    batch_timeout: 1m
    export_timeout: 2m

  batcher/foo:
    max_queue_size: 42

  resource:
    attributes:
      - key: string
        value: foo
      - key: int
        value: 42
      - key: float
        value: 3.14
      - key: bool
        value: true

      - key: strings
        value: [foo, bar]
      - key: ints
        value: [1, 2]
      - key: floats
        value: [3.14, 2.71]
      - key: bools
        value: [true, false, true]

    detectors:
      - os
      - process

  periodic_reader:
    interval: 1m
    timeout: 2m

exporters:
  debug:

  otlp:
    endpoint: example.com:80
    compression: gzip
    headers:
      foo: bar
      baz: qux

providers:
  tracer:
    processors: [batcher/foo, resource]
    exporters: [debug, otlp]
"""


def test_decode_full_document():
    config = loads_config(FULL_CONFIG)
    assert config.enabled
    assert set(config.processors) == {"batcher", "batcher/foo", "resource", "periodic_reader"}

    batcher = config.processors["batcher"]
    assert isinstance(batcher, BatcherConfig)
    assert batcher.max_queue_size == 1
    assert batcher.max_export_batch_size == 1
    assert batcher.schedule_delay == timedelta(minutes=1)
    assert batcher.export_timeout == timedelta(minutes=2)

    batcher_foo = config.processors["batcher/foo"]
    assert isinstance(batcher_foo, BatcherConfig)
    assert batcher_foo.max_queue_size == 42
    assert batcher_foo.schedule_delay is None

    resource = config.processors["resource"]
    assert isinstance(resource, ResourceConfig)
    assert resource.attributes == [
        Attribute("string", TypedValue(ValueKind.STRING, "foo")),
        Attribute("int", TypedValue(ValueKind.INT, 42)),
        Attribute("float", TypedValue(ValueKind.FLOAT, 3.14)),
        Attribute("bool", TypedValue(ValueKind.BOOL, True)),
        Attribute("strings", TypedValue(ValueKind.STRING_SLICE, ("foo", "bar"))),
        Attribute("ints", TypedValue(ValueKind.INT_SLICE, (1, 2))),
        Attribute("floats", TypedValue(ValueKind.FLOAT_SLICE, (3.14, 2.71))),
        Attribute("bools", TypedValue(ValueKind.BOOL_SLICE, (True, False, True))),
    ]
    assert resource.detectors == ["os", "process"]

    reader = config.processors["periodic_reader"]
    assert isinstance(reader, PeriodicReaderConfig)
    assert reader.interval == timedelta(minutes=1)
    assert reader.timeout == timedelta(minutes=2)

    assert isinstance(config.exporters["debug"], DebugExporterConfig)
    otlp = config.exporters["otlp"]
    assert isinstance(otlp, OTLPExporterConfig)
    assert otlp.endpoint == "example.com:80"
    assert otlp.compression == "gzip"
    assert otlp.header_values() == {"foo": "bar", "baz": "qux"}
    assert "bar" not in repr(otlp)

    assert config.providers == {
        "tracer": ProviderConfig(processors=["batcher/foo", "resource"], exporters=["debug", "otlp"])
    }


def test_unknown_type_is_dropped_and_reported():
    text = """
enabled: true
processors:
  unknown_type: {}
  batcher: {}
exporters:
  debug: {}
"""
    with pytest.raises(ConfigDecodeError) as exc_info:
        loads_config(text)

    error = exc_info.value
    assert [aggregate.tag for aggregate in error.errors] == ["processor"]
    aggregate = error.errors[0]
    assert isinstance(aggregate, AggregateError)
    assert isinstance(aggregate.errors[0], UnknownTypeError)
    assert aggregate.errors[0].identifier == "unknown_type"
    assert 'processor: "unknown_type": unknown type' in str(error)

    assert set(error.config.processors) == {"batcher"}
    assert set(error.config.exporters) == {"debug"}


def test_decode_errors_are_collected_per_section(registries):
    processors, exporters = registries
    text = """
enabled: true
processors:
  tag/ok: {label: ok}
  tag/bad: {label: [not, a, string]}
  nope/1: {}
exporters:
  fake/ok: {label: ok}
  fake/bad: {}
  other: {}
providers:
  tracer:
    exporters: [fake/ok]
"""
    with pytest.raises(ConfigDecodeError) as exc_info:
        loads_config(text, processors=processors, exporters=exporters)

    processor_errors, exporter_errors = exc_info.value.errors
    assert processor_errors.tag == "processor"
    assert sorted(err.identifier for err in processor_errors.errors) == ["nope/1", "tag/bad"]
    assert exporter_errors.tag == "exporter"
    assert sorted(err.identifier for err in exporter_errors.errors) == ["fake/bad", "other"]
    bad = next(err for err in exporter_errors.errors if err.identifier == "fake/bad")
    assert isinstance(bad, ComponentDecodeError)
    assert bad.__cause__ is bad.cause

    config = exc_info.value.config
    assert set(config.processors) == {"tag/ok"}
    assert set(config.exporters) == {"fake/ok"}
    assert set(config.providers) == {"tracer"}


@pytest.mark.parametrize(
    "text",
    [
        "",
        "enabled: false",
        "enabled: false\nprocessors:\n  unknown_type: {}\n",
        "processors:\n  batcher: {}\n",
    ],
)
def test_disabled_config_is_empty(text):
    config = loads_config(text)
    assert config == Config()
    assert not config.enabled


@pytest.mark.parametrize(
    "text, message",
    [
        ("- enabled", "config: expected a mapping"),
        ("enabled: maybe", "enabled: expected a bool"),
        ("enabled: true\nprocessors: [batcher]", "processors: expected a mapping"),
        ("enabled: true\nexporters:\n  /bad: {}", "exporters: invalid identifier"),
        ("enabled: true\nproviders:\n  tracer: {pipelines: [a]}", "providers: \"tracer\""),
        ("enabled: [", "invalid YAML"),
    ],
)
def test_shape_errors(text, message):
    with pytest.raises(ConfigError) as exc_info:
        loads_config(text)
    assert message in str(exc_info.value)


def test_unknown_top_level_keys_are_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger="telewire.config"):
        config = loads_config("enabled: true\npipelines: {}\n")
    assert config.enabled
    assert "Ignoring unknown config key 'pipelines'" in caplog.text


def test_identifier_keys_are_normalized(registries):
    processors, exporters = registries
    config = loads_config(
        "enabled: true\nexporters:\n  ' fake / a ': {label: a}\n",
        processors=processors,
        exporters=exporters,
    )
    assert list(config.exporters) == ["fake/a"]


def test_from_mapping_and_load_config(tmp_path, registries):
    processors, exporters = registries
    data = {
        "enabled": True,
        "exporters": {"fake": {"label": "x"}},
        "providers": {"logger/audit": {"exporters": ["fake"]}},
    }
    config = Config.from_mapping(data, processors=processors, exporters=exporters)
    assert config.exporters["fake"].label == "x"
    assert config.providers["logger/audit"].exporters == ["fake"]
    assert Config.from_mapping(None) == Config()

    path = tmp_path / "telemetry.yaml"
    path.write_text(FULL_CONFIG, encoding="utf-8")
    assert load_config(path) == loads_config(FULL_CONFIG)
