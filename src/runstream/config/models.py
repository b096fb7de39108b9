#
# config/models.py
#
"""
Attrs-based data models for runstream configuration structure.
"""

import codecs
import logging
from pathlib import Path
from typing import Any

from attrs import define, field

DEFAULT_EXECUTABLE = "vstest.console.exe"
DEFAULT_LINE_LIMIT = 1024 * 1024


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be positive integer, got {value}")


def _validate_positive_number(inst: Any, attr: Any, value: float) -> None:
    if not isinstance(value, int | float) or isinstance(value, bool) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be a positive number, got {value}")


def _validate_executable(inst: Any, attr: Any, value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Field '{attr.name}' must be a non-empty string, got {value!r}")


def _validate_encoding(inst: Any, attr: Any, value: str) -> None:
    try:
        codecs.lookup(value)
    except (LookupError, TypeError) as e:
        raise ValueError(f"Unknown encoding '{value}' for field '{attr.name}'") from e


def _to_str_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        raise TypeError("default_args must be a list of strings, not a single string")
    return tuple(str(item) for item in value)


def _to_optional_path(value: Any) -> Path | None:
    return None if value is None else Path(value)


@define(frozen=True, slots=True)
class RunnerConfig:
    """How the external test-runner executable is launched and read."""

    executable: str = field(default=DEFAULT_EXECUTABLE, validator=_validate_executable)
    # Appended after the target and before any per-run extra arguments.
    default_args: tuple[str, ...] = field(factory=tuple, converter=_to_str_tuple)
    encoding: str = field(default="utf-8", validator=_validate_encoding)
    line_limit: int = field(default=DEFAULT_LINE_LIMIT, validator=_validate_positive_int)
    # Seconds to wait for buffered output after the child is killed.
    drain_timeout: float = field(default=5.0, validator=_validate_positive_number)
    working_dir: Path | None = field(default=None, converter=_to_optional_path)


@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for runstream."""

    log_level: str = field(default="WARNING", validator=_validate_log_level)

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


@define(frozen=True, slots=True)
class RunstreamConfig:
    """Root configuration object for the runstream application."""

    runner: RunnerConfig = field(factory=RunnerConfig)
    global_config: GlobalConfig = field(factory=GlobalConfig, metadata={"toml_name": "global"})


# 🔼⚙️
