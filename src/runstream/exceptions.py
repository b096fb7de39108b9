# src/runstream/exceptions.py

"""
Exception hierarchy for runstream.
"""

from pathlib import Path


class RunstreamError(Exception):
    """Base class for all runstream errors."""

    pass


class ConfigurationError(RunstreamError):
    """Raised when the configuration file cannot be loaded or validated."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        full_message = message
        if path:
            full_message += f" (File: '{path}')"
        super().__init__(full_message)


class RunError(RunstreamError):
    """Base class for errors raised while starting or driving a run."""

    def __init__(self, message: str, details: Exception | None = None):
        self.details = details
        super().__init__(f"[Runner] {message}")
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


class InvalidTargetError(RunError):
    """The test target is missing, unreadable or not a file. Raised before spawning."""

    def __init__(self, target: Path | str):
        self.target = Path(target)
        super().__init__(f"Test target is missing, unreadable or not a file: '{target}'")


class SpawnFailureError(RunError):
    """The external test-runner executable could not be launched."""

    def __init__(self, executable: str, details: OSError | None = None):
        self.executable = executable
        reason = (details.strerror or str(details)) if details else "unknown error"
        super().__init__(f"Failed to launch '{executable}': {reason}", details=details)


class AlreadyRunningError(RunError):
    """A run is already in flight on this runner instance."""

    def __init__(self) -> None:
        super().__init__("A test run is already in progress on this runner")


# 🔼⚙️
