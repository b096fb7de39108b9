# src/runstream/telemetry/logger/processors.py

"""
Custom structlog processors shared by every runstream handler.
"""

import logging
from typing import Any

from structlog.typing import EventDict

LOG_EMOJIS = {
    logging.DEBUG: "🐛",
    logging.INFO: "ℹ️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
    "load": "📄",
    "validate": "✅",
    "fail": "🚫",
    "path": "📁",
    "time": "⏱️",
    "spawn": "🚀",
    "cancel": "🛑",
    "success": "🎉",
    "general": "➡️",
}

# Keys consumed by the processors below; never rendered.
INTERNAL_KEYS = ("emoji_key",)


def add_emoji_processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefix the event with an emoji picked from `emoji_key` or the log level."""
    emoji_key = event_dict.get("emoji_key")
    if emoji_key is not None and emoji_key in LOG_EMOJIS:
        emoji = LOG_EMOJIS[emoji_key]
    else:
        level_name = str(event_dict.get("level", method_name)).upper()
        level = logging.getLevelName(level_name)
        emoji = LOG_EMOJIS.get(level, LOG_EMOJIS["general"]) if isinstance(level, int) else LOG_EMOJIS["general"]

    event = event_dict.get("event")
    if isinstance(event, str):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Drop internal helper keys before rendering."""
    for key in INTERNAL_KEYS:
        event_dict.pop(key, None)
    return event_dict


# 🔼⚙️
