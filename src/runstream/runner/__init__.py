#
# src/runstream/runner/__init__.py
#
"""
Process execution sub-package: spawns the test tool and streams its output.
"""
from .protocols import (
    ERROR_PREFIX,
    LineSink,
    OutputLine,
    ProcessRunner,
    RunRequest,
    RunResult,
    RunStatus,
    StreamName,
)
from .subprocess_runner import SubprocessProcessRunner

__all__ = [
    "ERROR_PREFIX",
    "LineSink",
    "OutputLine",
    "ProcessRunner",
    "RunRequest",
    "RunResult",
    "RunStatus",
    "StreamName",
    "SubprocessProcessRunner",
]

# 🔼⚙️
