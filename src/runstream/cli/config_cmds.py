# src/runstream/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from runstream.cli.utils import logging_options, setup_logging_from_context
from runstream.config import DEFAULT_CONFIG_PATH, load_config
from runstream.exceptions import ConfigurationError
from runstream.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


# Create a command group for config-related commands
@click.group(name="config")
def config_cli():
    """Commands for inspecting and validating configuration."""
    pass


@config_cli.command(name="show")
@click.option(
    "-c",
    "--config-path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
    default=None,
    envvar="RUNSTREAM_CONF",
    help=f"Path to the runstream configuration file (env var RUNSTREAM_CONF). Defaults to ./{DEFAULT_CONFIG_PATH} if present.",
    show_envvar=True,
)
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path | None, **kwargs):
    """Load, validate, and display the configuration."""
    config_path = config_path if config_path is not None else DEFAULT_CONFIG_PATH
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )
    log.info("Executing 'config show' command", config_path=str(config_path))

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem in '{config_path}':\n{e}", err=True)
        ctx.exit(1)

    if not config_path.is_file():
        click.echo(f"No configuration file at '{config_path}'; showing defaults.", err=True)

    # Generate a rich-formatted string and echo it for testability.
    click.echo(pretty_repr(config, expand_all=True))

# 🔼⚙️
