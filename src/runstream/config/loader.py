#
# config/loader.py
#
"""
Loads runstream configuration from TOML and applies environment overrides.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

import attrs
import structlog

from runstream.config.models import GlobalConfig, RunnerConfig, RunstreamConfig
from runstream.exceptions import ConfigurationError

log = structlog.get_logger("config.loader")

DEFAULT_CONFIG_PATH = Path("runstream.toml")

ENV_EXECUTABLE = "RUNSTREAM_EXECUTABLE"
ENV_LOG_LEVEL = "RUNSTREAM_LOG_LEVEL"


def _build_section(cls: type, data: dict[str, Any], section: str, path: Path) -> Any:
    known = {a.name for a in attrs.fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown key(s) in [{section}]: {', '.join(unknown)}", path)

    try:
        return cls(**data)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value in [{section}]: {e}", path) from e


def _apply_env_overrides(data: dict[str, dict[str, Any]]) -> None:
    if executable := os.environ.get(ENV_EXECUTABLE):
        log.debug("Executable overridden from environment", env_var=ENV_EXECUTABLE)
        data.setdefault("runner", {})["executable"] = executable
    if log_level := os.environ.get(ENV_LOG_LEVEL):
        log.debug("Log level overridden from environment", env_var=ENV_LOG_LEVEL)
        data.setdefault("global", {})["log_level"] = log_level


def load_config(config_path: Path | None = None) -> RunstreamConfig:
    """
    Load and validate the configuration file.

    A missing file is not an error: defaults are used, with environment
    overrides still applied.

    Raises:
        ConfigurationError: on unreadable or malformed TOML, unknown keys,
            or values rejected by the model validators.
    """
    path = config_path if config_path is not None else DEFAULT_CONFIG_PATH
    load_log = log.bind(config_path=str(path))
    raw: dict[str, Any] = {}

    if path.is_file():
        try:
            with path.open("rb") as fh:
                raw = tomllib.load(fh)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML: {e}", path) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration: {e}", path) from e
        load_log.debug("Configuration file parsed", emoji_key="load")
    else:
        load_log.debug("No configuration file found, using defaults", emoji_key="path")

    unknown_sections = sorted(set(raw) - {"runner", "global"})
    if unknown_sections:
        raise ConfigurationError(f"Unknown section(s): {', '.join(unknown_sections)}", path)

    data: dict[str, dict[str, Any]] = {}
    for section in ("runner", "global"):
        value = raw.get(section, {})
        if not isinstance(value, dict):
            raise ConfigurationError(f"Section [{section}] must be a table", path)
        data[section] = dict(value)
    _apply_env_overrides(data)

    config = RunstreamConfig(
        runner=_build_section(RunnerConfig, data["runner"], "runner", path),
        global_config=_build_section(GlobalConfig, data["global"], "global", path),
    )
    load_log.debug("Configuration validated", emoji_key="validate", executable=config.runner.executable)
    return config


# 🔼⚙️
