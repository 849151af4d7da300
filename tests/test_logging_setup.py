"""Tests for the logging setup: timezone formatter, color wrapper, file output."""

from __future__ import annotations

import logging

import pytest

from shared.logging.logging_setup import ColoredFormatter, ColorLogger, TimezoneFormatter, setup_logging


def _record(level: int, msg: str = "hello %s", args: tuple = ("world",)) -> logging.LogRecord:
    return logging.LogRecord("transaction_docs", level, __file__, 1, msg, args, None)


class TestFormatters:
    def test_level_tags(self) -> None:
        formatter = TimezoneFormatter("Europe/Prague", fmt="%(message)s")
        assert formatter.format(_record(logging.INFO)) == "hello world"
        assert formatter.format(_record(logging.WARNING)) == "[WRN] hello world"
        assert formatter.format(_record(logging.ERROR)) == "[ERR] hello world"

    def test_color_attribute(self) -> None:
        formatter = ColoredFormatter("UTC", fmt="%(message)s")
        record = _record(logging.INFO)
        record.color = "green"
        assert formatter.format(record) == "\033[32mhello world\033[0m"


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


class TestSetupLogging:
    def test_writes_plain_file(self, monkeypatch, tmp_path, restore_root_logging) -> None:
        monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
        logger = setup_logging()
        assert isinstance(logger, ColorLogger)

        logger.warning("Document %s failed", "doc-1", color="red")

        content = (tmp_path / "logs" / "transaction_docs.log").read_text(encoding="utf-8")
        assert "[WRN]" in content
        assert "Document doc-1 failed" in content
        assert "\033[" not in content
