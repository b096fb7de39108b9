#
# config/__init__.py
#
"""
Configuration handling sub-package for runstream.

Exports the loading function and core configuration models.
"""

from .loader import DEFAULT_CONFIG_PATH, load_config
from .models import GlobalConfig, RunnerConfig, RunstreamConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "GlobalConfig",
    "RunnerConfig",
    "RunstreamConfig",
    "load_config",
]

# 🔼⚙️
