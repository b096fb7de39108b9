#
# src/runstream/runner/protocols.py
#
"""
Defines protocols and data structures for streamed test execution.
"""
from collections.abc import Callable, Iterable
from enum import Enum, auto
from pathlib import Path
from typing import Protocol, TypeAlias, runtime_checkable

from attrs import define, field

# Prefix for diagnostic lines the runner writes into the stderr sink itself.
ERROR_PREFIX = "[Error] "


class StreamName(Enum):
    """Which pipe of the child process a line was read from."""

    STDOUT = auto()
    STDERR = auto()


class RunStatus(Enum):
    """Terminal state of a run."""

    COMPLETED = auto()  # Child exited on its own; exit_code is set.
    CANCELLED = auto()  # Child was killed on request; no exit code.


def _to_args(value: Iterable[str]) -> tuple[str, ...]:
    if isinstance(value, str):
        raise TypeError("extra_args must be a sequence of strings, not a single string")
    return tuple(value)


@define(frozen=True, slots=True)
class RunRequest:
    """
    One test run to perform: the target assembly plus optional extra arguments.

    The target's existence is checked by the runner at run time, not here.
    """

    target: Path = field(converter=Path)
    extra_args: tuple[str, ...] = field(factory=tuple, converter=_to_args)


@define(frozen=True, slots=True)
class OutputLine:
    """A single line of child output, numbered per stream in arrival order."""

    text: str
    stream: StreamName
    index: int
    # True when the runner produced the line (e.g. an "[Error] ..." diagnostic).
    synthetic: bool = False


LineSink: TypeAlias = Callable[[OutputLine], None]


@define(frozen=True, slots=True)
class RunResult:
    """
    Structured result of a finished run.
    """

    status: RunStatus
    exit_code: int | None
    elapsed: float
    pid: int | None = None
    stdout_lines: int = 0
    stderr_lines: int = 0

    @property
    def success(self) -> bool:
        return self.status is RunStatus.COMPLETED and self.exit_code == 0

    @property
    def cancelled(self) -> bool:
        return self.status is RunStatus.CANCELLED


@runtime_checkable
class ProcessRunner(Protocol):
    """
    Protocol for a runner that executes an external test tool against a target.
    """

    @property
    def is_running(self) -> bool: ...

    @property
    def active_token(self) -> int | None: ...

    async def run(
        self,
        request: RunRequest,
        on_stdout: LineSink,
        on_stderr: LineSink,
    ) -> RunResult:
        """
        Runs the test tool against request.target, streaming lines into the sinks.

        Args:
            request: The target and extra arguments for this run.
            on_stdout: Receives each stdout line as soon as it is complete.
            on_stderr: Receives each stderr line, plus runner diagnostics.

        Returns:
            A RunResult with exit code (or cancelled status) and elapsed time.
        """
        ...

    def cancel(self, token: int | None = None) -> bool:
        """Requests termination of the in-flight run, or only of the run `token` names. Safe from any thread."""
        ...

# 🔼⚙️
