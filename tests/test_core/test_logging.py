"""Tests for logging setup."""

import json
import logging

import pytest

from wavescope.utils.logging import (
    ColoredFormatter,
    JSONFormatter,
    setup_logging,
    setup_logging_from_config,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _record(msg="hello", level=logging.INFO):
    return logging.LogRecord("wavescope.test", level, __file__, 10, msg, None, None)


class TestFormatters:
    def test_json_formatter(self):
        payload = json.loads(JSONFormatter().format(_record("decoded tone.wav")))
        assert payload["message"] == "decoded tone.wav"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "wavescope.test"

    def test_colored_formatter_restores_levelname(self):
        record = _record(level=logging.WARNING)
        text = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert "\033[33m" in text
        assert record.levelname == "WARNING"


class TestSetup:
    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "wavescope.log"
        setup_logging(level="DEBUG", log_file=str(log_file), console_enabled=False)
        logging.getLogger("wavescope.test").info("playback started")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "playback started"

    def test_from_config(self):
        setup_logging_from_config({"logging": {"level": "WARNING", "format": "json"}})
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
