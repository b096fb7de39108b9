# src/runstream/cli/run_cmds.py

import asyncio
from pathlib import Path

import attrs
import click
import structlog
from rich.console import Console

from runstream.api import EXIT_CANCELLED, EXIT_INVALID_TARGET, EXIT_SPAWN_FAILURE, shell_exit_code
from runstream.classify import classify_lines
from runstream.cli.render import describe_result, display_line, print_live_line, print_summary
from runstream.cli.utils import logging_options, setup_logging_from_context
from runstream.config import load_config
from runstream.exceptions import ConfigurationError, InvalidTargetError, SpawnFailureError
from runstream.runner import OutputLine, RunRequest, RunResult, SubprocessProcessRunner
from runstream.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")

EXIT_CONFIG_ERROR = 78  # EX_CONFIG


def _run_to_completion(
    runner: SubprocessProcessRunner,
    request: RunRequest,
    collected: list[OutputLine],
    console: Console,
    quiet: bool,
) -> RunResult:
    """
    Runs the test tool on a fresh event loop. CTRL-C cancels the run task,
    which kills the child before KeyboardInterrupt reaches the caller.
    """

    def sink(line: OutputLine) -> None:
        shown = display_line(line)
        collected.append(shown)
        if not quiet:
            print_live_line(console, shown)

    return asyncio.run(runner.run(request, sink, sink))


@click.command(name="run", context_settings={"ignore_unknown_options": True})
@click.argument("target", type=click.Path(path_type=Path))
@click.argument("extra_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "-c",
    "--config-path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
    default=None,
    envvar="RUNSTREAM_CONF",
    show_envvar=True,
    help="Path to the runstream configuration file (defaults to ./runstream.toml if present).",
)
@click.option(
    "-e",
    "--executable",
    default=None,
    envvar="RUNSTREAM_EXECUTABLE",
    show_envvar=True,
    help="Test-runner executable to launch (overrides config file).",
)
@click.option("--summary/--no-summary", default=True, show_default=True, help="Print a color-coded summary after the run.")
@click.option("-q", "--quiet", is_flag=True, help="Do not echo output lines while the run is in progress.")
@logging_options
@click.pass_context
def run_cli(
    ctx: click.Context,
    target: Path,
    extra_args: tuple[str, ...],
    config_path: Path | None,
    executable: str | None,
    summary: bool,
    quiet: bool,
    **kwargs,
):
    """Run the test tool against TARGET and stream its output.

    Any EXTRA_ARGS are passed to the test tool verbatim after the target.
    """
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load configuration", error=str(e))
        click.echo(f"Error: Configuration problem:\n{e}", err=True)
        ctx.exit(EXIT_CONFIG_ERROR)

    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
        default_log_level=config.global_config.log_level,
    )

    runner_config = config.runner
    if executable:
        runner_config = attrs.evolve(runner_config, executable=executable)

    runner = SubprocessProcessRunner(runner_config)
    request = RunRequest(target=target, extra_args=extra_args)
    console = Console(highlight=False)
    collected: list[OutputLine] = []

    log.info("Executing 'run' command", target=str(target), executable=runner_config.executable)

    try:
        result = _run_to_completion(runner, request, collected, console, quiet)
    except InvalidTargetError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_INVALID_TARGET)
    except SpawnFailureError as e:
        if quiet:
            for line in collected:
                print_live_line(console, line)
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_SPAWN_FAILURE)
    except KeyboardInterrupt:
        log.warning("Run interrupted by CTRL-C.")
        click.echo("Run cancelled.", err=True)
        ctx.exit(EXIT_CANCELLED)

    counts = print_summary(console, classify_lines(collected)) if summary else None
    console.print(describe_result(result, counts), soft_wrap=True)

    if result.cancelled:
        ctx.exit(EXIT_CANCELLED)
    if result.exit_code:
        ctx.exit(shell_exit_code(result.exit_code))

# 🔼⚙️
