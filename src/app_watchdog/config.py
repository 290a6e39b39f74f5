"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Port validation bounds
MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class MonitorConfig:
    """Watchdog configuration loaded from environment.

    This dataclass is frozen (immutable); it is set once at construction
    of the monitor and never changes afterwards.
    """

    # Managed application
    app_name: str = "internal-cms"  # Process name registered with PM2
    health_check_url: str = "http://localhost:3000/health"

    # Polling and escalation
    check_interval: float = 60.0  # seconds between health checks
    max_failures: int = 5  # consecutive failures before escalation
    warmup_delay: float = 5.0  # seconds before the first check

    # Memory thresholds (MB)
    # Above critical_memory_threshold a warning is logged; above
    # critical_memory_threshold + memory_restart_margin a restart is triggered.
    critical_memory_threshold: int = 700
    memory_restart_margin: int = 200

    # Dependency process that must be running for the app to work
    dependency_name: str = "mongod"

    # Timeouts (seconds)
    http_timeout: float = 10.0
    command_timeout: float = 30.0

    # Recovery settle delays (seconds)
    restart_settle_delay: float = 15.0
    force_recovery_settle_delay: float = 10.0
    force_recovery_step_delay: float = 3.0  # pause after stop and after delete

    # Supervisor
    pm2_path: str = "pm2"
    ecosystem_file: Path = Path("ecosystem.config.js")

    # Logging
    log_file: Path = Path("logs/monitor.log")
    log_level: str = "INFO"
    log_json: bool = False

    # Status endpoint
    status_enabled: bool = True
    status_host: str = "127.0.0.1"
    status_port: int = 3001

    @property
    def memory_restart_threshold(self) -> int:
        """Memory (MB) above which a pre-emptive restart is triggered."""
        return self.critical_memory_threshold + self.memory_restart_margin


def _parse_positive_int(value: str, name: str, default: int) -> int:
    """Parse a string as a positive integer with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive integer, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = int(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %d is not positive, using default %d",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _parse_non_negative_int(value: str, name: str, default: int) -> int:
    """Parse a string as a non-negative integer, falling back to default."""
    try:
        parsed = int(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %d is negative, using default %d",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _parse_positive_float(value: str, name: str, default: float) -> float:
    """Parse a string as a strictly positive float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive float, or the default if invalid.
    """
    try:
        parsed = float(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %f is not positive, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_non_negative_float(value: str, name: str, default: float) -> float:
    """Parse a string as a non-negative float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed non-negative float, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = float(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %f is negative, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _parse_port(value: str, name: str, default: int) -> int:
    """Parse a string as a valid TCP port number with range validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed port number (MIN_PORT-MAX_PORT), or the default if invalid.
    """
    try:
        parsed = int(value)
        if parsed < MIN_PORT or parsed > MAX_PORT:
            logging.warning(
                "Invalid %s: %d is not a valid port (must be %d-%d), using default %d",
                name,
                parsed,
                MIN_PORT,
                MAX_PORT,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid WATCHDOG_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _validate_url(value: str, name: str, default: str) -> str:
    """Require an http(s) URL, falling back to default otherwise."""
    stripped = value.strip()
    if not stripped.startswith(("http://", "https://")):
        logging.warning(
            "Invalid %s: '%s' is not an http(s) URL, using default '%s'",
            name,
            value,
            default,
        )
        return default
    return stripped


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Args:
        value: The string value to parse.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def load_config(env_file: Path | None = None) -> MonitorConfig:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        MonitorConfig object with loaded values.

    Values are validated and defaults are used for invalid inputs.
    """
    # Load .env file if it exists
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    app_name = os.getenv("WATCHDOG_APP_NAME", "").strip() or "internal-cms"
    health_check_url = _validate_url(
        os.getenv("WATCHDOG_HEALTH_CHECK_URL", "http://localhost:3000/health"),
        "WATCHDOG_HEALTH_CHECK_URL",
        "http://localhost:3000/health",
    )

    check_interval = _parse_positive_float(
        os.getenv("WATCHDOG_CHECK_INTERVAL", "60"),
        "WATCHDOG_CHECK_INTERVAL",
        60.0,
    )
    max_failures = _parse_positive_int(
        os.getenv("WATCHDOG_MAX_FAILURES", "5"),
        "WATCHDOG_MAX_FAILURES",
        5,
    )
    warmup_delay = _parse_non_negative_float(
        os.getenv("WATCHDOG_WARMUP_DELAY", "5"),
        "WATCHDOG_WARMUP_DELAY",
        5.0,
    )

    critical_memory_threshold = _parse_positive_int(
        os.getenv("WATCHDOG_CRITICAL_MEMORY_THRESHOLD", "700"),
        "WATCHDOG_CRITICAL_MEMORY_THRESHOLD",
        700,
    )
    memory_restart_margin = _parse_non_negative_int(
        os.getenv("WATCHDOG_MEMORY_RESTART_MARGIN", "200"),
        "WATCHDOG_MEMORY_RESTART_MARGIN",
        200,
    )

    http_timeout = _parse_positive_float(
        os.getenv("WATCHDOG_HTTP_TIMEOUT", "10"),
        "WATCHDOG_HTTP_TIMEOUT",
        10.0,
    )
    command_timeout = _parse_positive_float(
        os.getenv("WATCHDOG_COMMAND_TIMEOUT", "30"),
        "WATCHDOG_COMMAND_TIMEOUT",
        30.0,
    )

    restart_settle_delay = _parse_non_negative_float(
        os.getenv("WATCHDOG_RESTART_SETTLE_DELAY", "15"),
        "WATCHDOG_RESTART_SETTLE_DELAY",
        15.0,
    )
    force_recovery_settle_delay = _parse_non_negative_float(
        os.getenv("WATCHDOG_FORCE_RECOVERY_SETTLE_DELAY", "10"),
        "WATCHDOG_FORCE_RECOVERY_SETTLE_DELAY",
        10.0,
    )
    force_recovery_step_delay = _parse_non_negative_float(
        os.getenv("WATCHDOG_FORCE_RECOVERY_STEP_DELAY", "3"),
        "WATCHDOG_FORCE_RECOVERY_STEP_DELAY",
        3.0,
    )

    log_level = _validate_log_level(os.getenv("WATCHDOG_LOG_LEVEL", "INFO"))
    log_json = _parse_bool(os.getenv("WATCHDOG_LOG_JSON", ""))

    status_enabled = _parse_bool(os.getenv("WATCHDOG_STATUS_ENABLED", "true"))
    status_port = _parse_port(
        os.getenv("WATCHDOG_STATUS_PORT", "3001"),
        "WATCHDOG_STATUS_PORT",
        3001,
    )

    return MonitorConfig(
        app_name=app_name,
        health_check_url=health_check_url,
        check_interval=check_interval,
        max_failures=max_failures,
        warmup_delay=warmup_delay,
        critical_memory_threshold=critical_memory_threshold,
        memory_restart_margin=memory_restart_margin,
        dependency_name=os.getenv("WATCHDOG_DEPENDENCY_NAME", "").strip() or "mongod",
        http_timeout=http_timeout,
        command_timeout=command_timeout,
        restart_settle_delay=restart_settle_delay,
        force_recovery_settle_delay=force_recovery_settle_delay,
        force_recovery_step_delay=force_recovery_step_delay,
        pm2_path=os.getenv("WATCHDOG_PM2_PATH", "").strip() or "pm2",
        ecosystem_file=Path(os.getenv("WATCHDOG_ECOSYSTEM_FILE", "ecosystem.config.js")),
        log_file=Path(os.getenv("WATCHDOG_LOG_FILE", "logs/monitor.log")),
        log_level=log_level,
        log_json=log_json,
        status_enabled=status_enabled,
        status_host=os.getenv("WATCHDOG_STATUS_HOST", "127.0.0.1"),
        status_port=status_port,
    )


__all__ = ["MonitorConfig", "load_config"]
