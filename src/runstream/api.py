# src/runstream/api.py

"""
Blocking entry point for CLI and embedding callers.
"""

import asyncio
from collections.abc import Sequence
from pathlib import Path

import structlog

from runstream.config.models import RunnerConfig
from runstream.exceptions import InvalidTargetError, SpawnFailureError
from runstream.runner import OutputLine, RunRequest, SubprocessProcessRunner

log = structlog.get_logger("api")

# Sentinel exit codes; the external tool's own codes are passed through unchanged.
EXIT_INVALID_TARGET = 66  # EX_NOINPUT
EXIT_SPAWN_FAILURE = 127  # shell "command not found"
EXIT_CANCELLED = 130  # 128 + SIGINT


def shell_exit_code(code: int) -> int:
    """Maps a signal death (negative returncode) to the shell's 128 + N convention."""
    return 128 + abs(code) if code < 0 else code


def run_tests(
    target_path: str | Path,
    args: Sequence[str] = (),
    *,
    config: RunnerConfig | None = None,
) -> tuple[int, list[OutputLine]]:
    """
    Run the test tool against `target_path` and wait for it to finish.

    Lines from both streams are collected in arrival order. Must not be called
    from a thread that is already running an event loop.

    Returns:
        The exit code (or one of the EXIT_* sentinels) and the collected lines.
    """
    lines: list[OutputLine] = []
    runner = SubprocessProcessRunner(config)
    request = RunRequest(target=target_path, extra_args=tuple(args))

    try:
        result = asyncio.run(runner.run(request, lines.append, lines.append))
    except InvalidTargetError as e:
        log.error("Cannot run tests", error=str(e))
        return EXIT_INVALID_TARGET, lines
    except SpawnFailureError as e:
        log.error("Cannot run tests", error=str(e))
        return EXIT_SPAWN_FAILURE, lines

    if result.cancelled or result.exit_code is None:
        return EXIT_CANCELLED, lines
    return shell_exit_code(result.exit_code), lines


# 🔼⚙️
