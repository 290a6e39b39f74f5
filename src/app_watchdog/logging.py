"""Structured logging configuration for the watchdog.

Two outputs are configured by :func:`setup_logging`:

- A console handler on stderr using :class:`StructuredFormatter` (or
  :class:`JSONFormatter` when JSON output is requested).
- The append-only monitor log file, one line per event, in the format
  ``[<ISO-8601 timestamp>] [<LEVEL>] <message>`` with levels ``INFO``,
  ``WARN``, ``ERROR`` and ``CRITICAL``.

The file is written through a single ``logging.FileHandler``. Its handler
lock serializes emits, so lines from the monitor thread and the status
server thread never interleave.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import MutableMapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Context fields rendered by the formatters when present on a record
_CONTEXT_FIELDS = ("app_name", "recovery_kind", "failure_kind")

# Monitor log level names; WARNING is written as WARN
_MONITOR_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured log messages.

    Includes timestamp, level, component, message, and any extra context.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with structured output.

        Args:
            record: The log record to format.

        Returns:
            Formatted log string.
        """
        # Extract component from logger name (e.g., "app_watchdog.monitor" -> "monitor")
        component = record.name.split(".")[-1] if "." in record.name else record.name

        timestamp = datetime.fromtimestamp(record.created, tz=UTC).strftime("%Y-%m-%d %H:%M:%S.%f")[
            :-3
        ]

        parts = [
            f"{timestamp}",
            f"[{record.levelname:8}]",
            f"[{component:10}]",
        ]

        context_parts = []
        for key in _CONTEXT_FIELDS:
            if hasattr(record, key):
                context_parts.append(f"{key}={getattr(record, key)}")

        if context_parts:
            parts.append(f"[{' '.join(context_parts)}]")

        parts.append(record.getMessage())

        if record.exc_info:
            parts.append(self.formatException(record.exc_info))

        return " ".join(parts)


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON log messages for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted log string.
        """
        component = record.name.split(".")[-1] if "." in record.name else record.name

        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "component": component,
            "message": record.getMessage(),
        }

        for key in _CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class MonitorLogFormatter(logging.Formatter):
    """Formatter for the append-only monitor log file.

    Produces ``[2024-01-31T12:00:00.000Z] [WARN] message``. Tracebacks are
    folded onto the same line so every event stays a single line.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).strftime(
            "%Y-%m-%dT%H:%M:%S.%f"
        )[:-3]
        level = _MONITOR_LEVEL_NAMES.get(record.levelno, record.levelname)
        message = record.getMessage()
        if record.exc_info:
            exc_text = self.formatException(record.exc_info).replace("\n", " | ")
            message = f"{message} | {exc_text}"
        return f"[{timestamp}Z] [{level}] {message}"


class ContextAdapter(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that adds context to all log messages.

    Usage:
        logger = get_logger(__name__)
        ctx_logger = logger.with_context(app_name="internal-cms")
        ctx_logger.info("Restart command sent")
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Add context to the log record.

        Args:
            msg: The log message.
            kwargs: Keyword arguments for the log call.

        Returns:
            Tuple of (message, kwargs) with context added.
        """
        extra = kwargs.get("extra", {})
        if self.extra is not None:
            extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


class WatchdogLogger(logging.Logger):
    """Custom logger with context support."""

    def with_context(self, **context: Any) -> ContextAdapter:
        """Create a logger adapter with additional context.

        Args:
            **context: Context fields to add to all log messages.

        Returns:
            ContextAdapter with the specified context.
        """
        return ContextAdapter(self, context)


# Register our custom logger class
logging.setLoggerClass(WatchdogLogger)


def get_logger(name: str) -> WatchdogLogger:
    """Get a logger with the custom WatchdogLogger class.

    Args:
        name: Logger name (typically __name__).

    Returns:
        WatchdogLogger instance.
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def create_monitor_file_handler(log_file: Path) -> logging.FileHandler:
    """Create the append-only handler for the monitor log file.

    The parent directory is created if it does not exist. DEBUG records are
    not written to the file.

    Args:
        log_file: Path of the monitor log file.

    Returns:
        Configured FileHandler in append mode.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(MonitorLogFormatter())
    handler.setLevel(logging.INFO)
    return handler


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    replace_handlers: bool = True,
    log_file: Path | None = None,
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON-formatted logs on the console.
        replace_handlers: If True, remove existing handlers before adding new ones.
            Set to False to preserve existing handlers (e.g., from third-party libraries).
        log_file: Optional monitor log file. When given, watchdog events are also
            appended there in the monitor log format.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    if replace_handlers:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    # The monitor log always records INFO events; the console handler applies `level`
    watchdog_logger = logging.getLogger("app_watchdog")
    watchdog_logger.setLevel(min(numeric_level, logging.INFO))

    if log_file is not None:
        # Only watchdog events go to the monitor log, not uvicorn or httpx chatter
        for handler in watchdog_logger.handlers[:]:
            if isinstance(handler, logging.FileHandler):
                watchdog_logger.removeHandler(handler)
                handler.close()
        watchdog_logger.addHandler(create_monitor_file_handler(log_file))


__all__ = [
    "ContextAdapter",
    "JSONFormatter",
    "MonitorLogFormatter",
    "StructuredFormatter",
    "WatchdogLogger",
    "create_monitor_file_handler",
    "get_logger",
    "setup_logging",
]
