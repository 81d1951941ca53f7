"""Command-line interface for the relay-pulse widget."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import click

from relay_pulse.core.config import MainConfig, load_main_config
from relay_pulse.core.exceptions import ConfigurationError, PersistenceError
from relay_pulse.core.selection import SelectionModel, SelectionState
from relay_pulse.core.settings import SettingsRepository, step_bubble_size
from relay_pulse.storage.json_store import JsonFileStore
from relay_pulse.types.models import BubbleConfig
from relay_pulse.utils.logging import configure_logging

DEFAULT_CONFIG_PATH: Path = Path("relay-pulse.yaml")

try:
    __version__ = version("relay-pulse")
except PackageNotFoundError:
    __version__ = "unknown"


def validate_config_path(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: Path | None,
) -> Path | None:
    """Validate configuration file path.

    Raises:
        click.BadParameter: If the path is a directory or not a YAML file
    """
    if value is None:
        return value

    if value.exists() and value.is_dir():
        raise click.BadParameter("Configuration path must be a file, not a directory")

    if value.suffix.lower() not in {".yaml", ".yml"}:
        raise click.BadParameter("Invalid configuration file extension. Supported extensions: .yaml, .yml")

    return value


def validate_log_level(
    ctx: click.Context,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    param: click.Parameter,  # pyright: ignore[reportUnusedParameter] # required by Click callback signature
    value: str | None,
) -> str | None:
    """Validate and normalize log level.

    Raises:
        click.BadParameter: If the level is unknown
    """
    if value is None:
        return value

    normalized_value = value.upper().strip()
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
    if normalized_value not in valid_levels:
        raise click.BadParameter(
            f'Invalid log level "{value}". Valid options: {", ".join(sorted(valid_levels))}'
        )

    return normalized_value


def load_config(config_path: Path | None) -> MainConfig:
    """Load the explicit config file, the default one if present, or defaults.

    Raises:
        click.ClickException: If the configuration is invalid
    """
    path = config_path
    if path is None and DEFAULT_CONFIG_PATH.is_file():
        path = DEFAULT_CONFIG_PATH
    if path is None:
        return MainConfig()

    try:
        return load_main_config(path)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc


def _settings_repository(config: MainConfig) -> SettingsRepository:
    return SettingsRepository(
        JsonFileStore(config.store.path),
        default_bubble=config.bubble.to_bubble_config(),
        default_interval_ms=config.polling.interval_ms,
    )


@click.group(invoke_without_command=True)
@click.option(
    "--config", "-c",
    type=click.Path(path_type=Path),
    default=None,
    callback=validate_config_path,
    help=f"Configuration file path (.yaml/.yml). Defaults to ./{DEFAULT_CONFIG_PATH} when present.",
)
@click.option(
    "--log-level", "-l",
    type=str,
    default=None,
    callback=validate_log_level,
    help="Logging verbosity level (DEBUG, INFO, WARNING, ERROR). Overrides the config file.",
)
@click.option(
    "--once", "-o",
    is_flag=True,
    help="Fetch the status once, print the active view and exit",
)
@click.version_option(version=__version__, prog_name="Relay Pulse")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str | None,
    once: bool,
) -> None:
    """Relay Pulse - Service availability status widget.

    Polls the relay status API and shows the monitored provider channels as
    a filterable card list or a single compact bubble.

    Examples:

        # Run the widget with default configuration
        relay-pulse

        # Print the current status once
        relay-pulse --once

        # Point the bubble at one channel and enable it
        relay-pulse bubble --provider 88code --service cc --channel main --enable
    """
    main_config = load_config(config)
    if log_level is not None:
        main_config.application.log_level = log_level

    configure_logging(
        log_level=main_config.application.log_level,
        enable_syslog=main_config.application.syslog_enabled,
    )
    ctx.obj = main_config

    if ctx.invoked_subcommand is None:
        from relay_pulse.app.runner import ApplicationRunner

        runner = ApplicationRunner(main_config, run_once=once, output=click.echo)
        try:
            runner.run()
        except KeyboardInterrupt:
            click.echo("\nShutting down gracefully...")
        except Exception as e:
            raise click.ClickException(str(e)) from e


@cli.command()
@click.option("--provider", "-p", type=str, default=None, help="Bubble target provider (clears service and channel)")
@click.option("--service", "-s", type=str, default=None, help="Bubble target service (clears channel)")
@click.option("--channel", "-n", type=str, default=None, help="Bubble target channel")
@click.option("--size-steps", type=int, default=0, help="Grow (positive) or shrink (negative) the bubble by steps of 10")
@click.option("--enable/--disable", default=None, help="Show the bubble instead of the card list on next start")
@click.pass_obj
def bubble(
    config: MainConfig,
    provider: str | None,
    service: str | None,
    channel: str | None,
    size_steps: int,
    enable: bool | None,
) -> None:
    """Show or edit the persisted bubble configuration.

    Options are applied provider first, then service, then channel, so
    changing a level always clears the levels below it.
    """
    settings = _settings_repository(config)

    async def _update() -> BubbleConfig:
        current = await settings.load_bubble_config()
        model = SelectionModel.bubble_target()
        selection = SelectionState(current.provider, current.service, current.channel)
        if provider is not None:
            selection = model.set_provider(selection, provider)
        if service is not None:
            selection = model.set_service(selection, service)
        if channel is not None:
            selection = model.set_channel(selection, channel)

        updated = replace(
            current,
            provider=selection.provider,
            service=selection.service,
            channel=selection.channel,
            size=step_bubble_size(current.size, size_steps),
            enabled=current.enabled if enable is None else enable,
        )
        if updated != current:
            await settings.save_bubble_config(updated)
        return updated

    try:
        result = asyncio.run(_update())
    except PersistenceError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"enabled:  {result.enabled}")
    click.echo(f"provider: {result.provider or '-'}")
    click.echo(f"service:  {result.service or '-'}")
    click.echo(f"channel:  {result.channel or '-'}")
    click.echo(f"size:     {result.size}")


@cli.command()
@click.argument("seconds", type=click.IntRange(1, 60), required=False)
@click.pass_obj
def interval(config: MainConfig, seconds: int | None) -> None:
    """Show or set the poll interval in seconds (1-60)."""
    settings = _settings_repository(config)

    async def _update() -> int:
        if seconds is not None:
            await settings.save_interval_ms(seconds * 1000)
        return await settings.load_interval_ms()

    try:
        interval_ms = asyncio.run(_update())
    except PersistenceError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"{interval_ms // 1000}s")
