"""Tests for pygrep.utils.logging_config module."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pygrep.utils.logging_config import (
    JsonFormatter,
    LogFormat,
    LogLevel,
    SearchLogger,
    StructuredFormatter,
    configure_logging,
    disable_logging,
    get_logger,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("pygrep", logging.ERROR, __file__, 10, "a.txt: Permission denied", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSearchLogger:
    def test_defaults(self):
        logger = SearchLogger(name="pygrep.test")
        assert logger.logger.level == logging.WARNING
        assert logger.logger.propagate is False
        assert len(logger.logger.handlers) == 1

    def test_no_duplicate_handlers(self):
        SearchLogger(name="pygrep.test")
        logger = SearchLogger(name="pygrep.test")
        assert len(logger.logger.handlers) == 1

    def test_simple_format_prefixes_name(self):
        formatter = SearchLogger(name="pygrep.test")._get_formatter()
        assert formatter.format(_record()) == "pygrep.test: a.txt: Permission denied"

    def test_file_output(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "pygrep.log"
        logger = SearchLogger(
            name="pygrep.filetest",
            level=LogLevel.DEBUG,
            log_file=log_file,
            enable_console=False,
            enable_file=True,
        )
        logger.log_source_skipped("x.bin", "not a regular file")
        for handler in logger.logger.handlers:
            handler.flush()
        assert "Skipping x.bin: not a regular file" in log_file.read_text(encoding="utf-8")

    def test_source_error_goes_to_stderr(self, capsys):
        logger = SearchLogger(name="pygrep.stderr")
        logger.log_source_error("a.txt", "a.txt: Permission denied")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "a.txt: Permission denied" in captured.err

    def test_info_hidden_at_warning(self, capsys):
        logger = SearchLogger(name="pygrep.quiet")
        logger.log_search_start("cat", ["a.txt"])
        assert capsys.readouterr().err == ""


class TestFormatters:
    def test_json(self):
        data = json.loads(JsonFormatter().format(_record(source="a.txt", operation="source_error")))
        assert data["level"] == "ERROR"
        assert data["message"] == "a.txt: Permission denied"
        assert data["source"] == "a.txt"
        assert data["operation"] == "source_error"

    def test_json_carries_event_fields(self, capsys):
        logger = SearchLogger(name="pygrep.json", level=LogLevel.DEBUG, format_type=LogFormat.JSON)
        logger.log_source_skipped("x.bin", "excluded by pattern")
        data = json.loads(capsys.readouterr().err.strip())
        assert data["operation"] == "source_skipped"
        assert data["source"] == "x.bin"
        assert data["reason"] == "excluded by pattern"
        assert "lineno" not in data

    def test_json_keeps_undecodable_names(self):
        data = json.loads(JsonFormatter().format(_record(source="bad\udcff.txt")))
        assert data["source"] == "bad\udcff.txt"

    def test_detailed_without_operation(self):
        formatter = SearchLogger(name="pygrep.test", format_type=LogFormat.DETAILED)._get_formatter()
        assert formatter.format(_record()).endswith("- ERROR - - - a.txt: Permission denied")

    def test_structured(self):
        line = StructuredFormatter().format(_record(source="a.txt"))
        assert "[ERROR] pygrep: a.txt: Permission denied" in line
        assert "source=a.txt" in line


class TestGlobalLogger:
    def test_configure_replaces_global(self):
        logger = configure_logging(level=LogLevel.INFO, format_type=LogFormat.DETAILED)
        assert get_logger() is logger
        assert logger.logger.level == logging.INFO

    def test_disable(self):
        configure_logging()
        disable_logging()
        assert get_logger().logger.level > logging.CRITICAL

    def test_disable_hides_source_errors(self, capsys):
        configure_logging()
        disable_logging()
        get_logger().log_source_error("a.txt", "a.txt: Permission denied")
        assert capsys.readouterr().err == ""

    def test_debug_level_shows_skips(self, capsys):
        logger = configure_logging(level=LogLevel.DEBUG)
        logger.log_source_skipped("fifo", "not a regular file")
        assert "pygrep: Skipping fifo: not a regular file" in capsys.readouterr().err
