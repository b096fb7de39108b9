# src/runstream/__init__.py

"""
runstream: streams the output of an external test runner and classifies it for display.
"""

from runstream.api import EXIT_CANCELLED, EXIT_INVALID_TARGET, EXIT_SPAWN_FAILURE, run_tests
from runstream.classify import CATEGORY_STYLES, Category, ClassifiedLine, classify, classify_lines
from runstream.exceptions import (
    AlreadyRunningError,
    ConfigurationError,
    InvalidTargetError,
    RunError,
    RunstreamError,
    SpawnFailureError,
)
from runstream.runner import (
    OutputLine,
    ProcessRunner,
    RunRequest,
    RunResult,
    RunStatus,
    StreamName,
    SubprocessProcessRunner,
)
from runstream.runtime import BackgroundRun

__all__ = [
    "CATEGORY_STYLES",
    "EXIT_CANCELLED",
    "EXIT_INVALID_TARGET",
    "EXIT_SPAWN_FAILURE",
    "AlreadyRunningError",
    "BackgroundRun",
    "Category",
    "ClassifiedLine",
    "ConfigurationError",
    "InvalidTargetError",
    "OutputLine",
    "ProcessRunner",
    "RunError",
    "RunRequest",
    "RunResult",
    "RunStatus",
    "RunstreamError",
    "SpawnFailureError",
    "StreamName",
    "SubprocessProcessRunner",
    "classify",
    "classify_lines",
    "run_tests",
]

# 🔼⚙️
