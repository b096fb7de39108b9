# src/runstream/runtime/__init__.py

from .background import BackgroundRun

__all__ = ["BackgroundRun"]

# 🔼⚙️
