#
# tests/unit/test_logging.py
#
"""
Tests for structlog setup and the custom processors.
"""

import json
import logging
import sys
from pathlib import Path

import structlog

from runstream.telemetry import setup_logging
from runstream.telemetry.logger import LOG_EMOJIS
from runstream.telemetry.logger.processors import add_emoji_processor, remove_extra_keys_processor


def test_emoji_from_key_and_level():
    keyed = add_emoji_processor(None, "info", {"event": "Launching", "emoji_key": "spawn", "level": "info"})
    by_level = add_emoji_processor(None, "error", {"event": "Boom", "level": "error"})

    assert keyed["event"] == f"{LOG_EMOJIS['spawn']} Launching"
    assert by_level["event"] == f"{LOG_EMOJIS[logging.ERROR]} Boom"


def test_internal_keys_removed():
    event = remove_extra_keys_processor(None, "info", {"event": "x", "emoji_key": "spawn", "pid": 1})
    assert event == {"event": "x", "pid": 1}


def test_file_logging_is_json(tmp_path: Path):
    log_file = tmp_path / "runstream.log"
    setup_logging(level=logging.INFO, log_file=str(log_file))

    structlog.get_logger("tests.logging").info("Run finished", exit_code=0, emoji_key="success")
    for handler in logging.getLogger().handlers:
        handler.flush()

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    finished = [r for r in records if r["event"].endswith("Run finished")]
    assert finished and finished[0]["exit_code"] == 0
    assert "emoji_key" not in finished[0]
    assert finished[0]["level"] == "info"

    logging.getLogger().handlers.clear()


def test_console_handler_writes_to_stderr():
    setup_logging(level=logging.WARNING)

    stream_handlers = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].stream is sys.stderr

    logging.getLogger().handlers.clear()
