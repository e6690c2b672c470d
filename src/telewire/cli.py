"""Command line utilities for telewire configuration files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from .components import Signal
from .config import Config, load_config
from .exceptions import ConfigDecodeError, ConfigError, TelewireError
from .identifier import Identifier
from .registry import EXPORTERS, PROCESSORS
from .resolver import Resolver

app = typer.Typer(help="Inspect and check telewire telemetry configurations.")

_CONFIG_ARGUMENT = typer.Argument(..., exists=True, dir_okay=False, help="YAML config file")
_BUILD_OPTION = typer.Option(
    False,
    "--build",
    help="Also build every provider (without starting exporters) to catch wiring errors",
)
_LOG_LEVEL_OPTION = typer.Option("warning", "--log-level", help="Logging level")

_SIGNALS = {signal.provider_type: signal for signal in Signal}


@app.callback()
def configure(log_level: str = _LOG_LEVEL_OPTION) -> None:
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.WARNING))


def _print_config(config: Config) -> None:
    if not config.enabled:
        typer.echo("telemetry disabled")
        return
    typer.echo("providers:")
    for identifier in sorted(config.providers):
        provider = config.providers[identifier]
        processors = ", ".join(provider.processors)
        exporters = ", ".join(provider.exporters)
        typer.echo(f"  {identifier}: processors=[{processors}] exporters=[{exporters}]")


async def _build_all(config: Config) -> list[str]:
    resolver = Resolver(config)
    failures = []
    for identifier in sorted(config.providers):
        signal = _SIGNALS.get(Identifier(identifier).type)
        if signal is None:
            failures.append(f'"{identifier}": not a tracer, meter or logger provider')
            continue
        try:
            await resolver.provider(signal, identifier.name)
        except TelewireError as exc:
            failures.append(str(exc))
    try:
        await resolver.shutdown()
    except TelewireError as exc:
        failures.append(str(exc))
    return failures


@app.command()
def validate(config_path: Path = _CONFIG_ARGUMENT, build: bool = _BUILD_OPTION) -> None:
    """Decode CONFIG_PATH and report every invalid entry."""
    failed = False
    try:
        config = load_config(config_path)
    except ConfigDecodeError as exc:
        config = exc.config
        failed = True
        typer.echo(str(exc), err=True)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    _print_config(config)
    if build:
        for failure in asyncio.run(_build_all(config)):
            failed = True
            typer.echo(failure, err=True)
    if failed:
        raise typer.Exit(code=1)


@app.command("types")
def list_types() -> None:
    """List the registered processor and exporter types."""
    typer.echo("processors: " + ", ".join(PROCESSORS.types()))
    typer.echo("exporters: " + ", ".join(EXPORTERS.types()))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
