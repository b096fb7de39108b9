# src/runstream/telemetry/logger/__init__.py

from runstream.telemetry.logger.base import StructLogger, setup_logging
from runstream.telemetry.logger.processors import LOG_EMOJIS

__all__ = ["LOG_EMOJIS", "StructLogger", "setup_logging"]

# 🔼⚙️
