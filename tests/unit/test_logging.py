"""Tests for logging configuration and the monitor log format."""

from __future__ import annotations

import json
import logging
import re
import sys
from pathlib import Path

import pytest

from app_watchdog.logging import (
    ContextAdapter,
    JSONFormatter,
    MonitorLogFormatter,
    StructuredFormatter,
    WatchdogLogger,
    create_monitor_file_handler,
    get_logger,
    setup_logging,
)

LINE_PATTERN = re.compile(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\] \[(\w+)\] (.*)$")


def make_record(level: int, msg: str, name: str = "app_watchdog.monitor", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(name, level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestMonitorLogFormatter:
    """Tests for the [ISO] [LEVEL] message line format."""

    def test_line_format(self) -> None:
        line = MonitorLogFormatter().format(make_record(logging.INFO, "Health check passed"))
        match = LINE_PATTERN.match(line)
        assert match is not None
        assert match.group(1) == "INFO"
        assert match.group(2) == "Health check passed"

    @pytest.mark.parametrize(
        ("level", "name"),
        [
            (logging.INFO, "INFO"),
            (logging.WARNING, "WARN"),
            (logging.ERROR, "ERROR"),
            (logging.CRITICAL, "CRITICAL"),
        ],
    )
    def test_level_names(self, level: int, name: str) -> None:
        line = MonitorLogFormatter().format(make_record(level, "x"))
        assert f"] [{name}] x" in line

    def test_exception_stays_on_one_line(self) -> None:
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            record = logging.LogRecord(
                "app_watchdog.monitor", logging.ERROR, __file__, 1, "Monitoring error", None, sys.exc_info()
            )
        line = MonitorLogFormatter().format(record)
        assert "\n" not in line
        assert "RuntimeError: kaboom" in line


class TestConsoleFormatters:
    """Tests for the structured and JSON console formatters."""

    def test_structured_includes_context(self) -> None:
        record = make_record(logging.ERROR, "Health check failed", failure_kind="http_unhealthy")
        output = StructuredFormatter().format(record)
        assert "failure_kind=http_unhealthy" in output
        assert "Health check failed" in output

    def test_json_output(self) -> None:
        record = make_record(logging.WARNING, "High memory usage", app_name="internal-cms")
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["component"] == "monitor"
        assert data["message"] == "High memory usage"
        assert data["app_name"] == "internal-cms"


class TestWatchdogLogger:
    """Tests for get_logger() and context adapters."""

    def test_get_logger_returns_watchdog_logger(self) -> None:
        assert isinstance(get_logger("app_watchdog.test_logger_class"), WatchdogLogger)

    def test_with_context_adds_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("app_watchdog.test_context")
        adapter = logger.with_context(app_name="internal-cms")
        assert isinstance(adapter, ContextAdapter)

        with caplog.at_level(logging.INFO, logger="app_watchdog"):
            adapter.info("hello")

        assert caplog.records[-1].app_name == "internal-cms"  # type: ignore[attr-defined]


@pytest.mark.usefixtures("restore_logging")
class TestMonitorLogFile:
    """Tests for the append-only monitor log file."""

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "nested" / "monitor.log"
        handler = create_monitor_file_handler(log_file)
        handler.close()
        assert log_file.parent.is_dir()

    def test_appends_lines_and_skips_debug(self, tmp_path: Path) -> None:
        log_file = tmp_path / "monitor.log"
        log_file.write_text("[2024-01-01T00:00:00.000Z] [INFO] earlier run\n")

        setup_logging("DEBUG", replace_handlers=False, log_file=log_file)
        logger = get_logger("app_watchdog.test_file")
        logger.debug("not in file")
        logger.info("Starting production monitoring...")
        logger.warning("High memory usage detected: 750MB")
        for handler in logging.getLogger("app_watchdog").handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        assert lines[0].endswith("earlier run")
        assert len(lines) == 3
        assert lines[1].endswith("[INFO] Starting production monitoring...")
        assert lines[2].endswith("[WARN] High memory usage detected: 750MB")
        assert all(LINE_PATTERN.match(line) for line in lines)

    def test_quiet_console_still_records_info_in_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "monitor.log"

        setup_logging("ERROR", replace_handlers=False, log_file=log_file)
        console = logging.getLogger().handlers[-1]
        logger = get_logger("app_watchdog.monitor")
        logger.info("Health check passed - Memory: 256MB, CPU: 3.2%")
        for handler in logging.getLogger("app_watchdog").handlers:
            handler.flush()

        assert console.level == logging.ERROR
        assert logging.getLogger("app_watchdog").level == logging.INFO
        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        assert lines[0].endswith("[INFO] Health check passed - Memory: 256MB, CPU: 3.2%")

    def test_repeated_setup_keeps_single_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "monitor.log"
        setup_logging("INFO", replace_handlers=False, log_file=log_file)
        setup_logging("INFO", replace_handlers=False, log_file=log_file)

        file_handlers = [
            h for h in logging.getLogger("app_watchdog").handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1
