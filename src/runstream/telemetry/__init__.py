# src/runstream/telemetry/__init__.py

"""
Logging setup and logger type hints for runstream.
"""

from runstream.telemetry.logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️
