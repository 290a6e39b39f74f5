"""Command-line interface argument parsing.

Every option overrides the matching WATCHDOG_* environment variable.
"""

from __future__ import annotations

import argparse
from pathlib import Path


def _positive_float(value: str) -> float:
    parsed = float(value)
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return parsed


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return parsed


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - env_file: Path to .env file
        - app_name: PM2 process name of the managed app
        - health_url: HTTP health endpoint
        - interval: Check interval in seconds
        - max_failures: Consecutive failures before escalation
        - log_level: Logging level
        - once: Whether to run a single check and exit
        - no_status_server: Whether to skip the status endpoint
    """
    parser = argparse.ArgumentParser(
        prog="app-watchdog",
        description="App Watchdog - health monitoring and recovery for a PM2-managed app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    parser.add_argument(
        "--app-name",
        default=None,
        help="PM2 process name (overrides WATCHDOG_APP_NAME)",
    )

    parser.add_argument(
        "--health-url",
        default=None,
        help="HTTP health endpoint (overrides WATCHDOG_HEALTH_CHECK_URL)",
    )

    parser.add_argument(
        "--interval",
        type=_positive_float,
        default=None,
        help="Check interval in seconds (overrides WATCHDOG_CHECK_INTERVAL)",
    )

    parser.add_argument(
        "--max-failures",
        type=_positive_int,
        default=None,
        help="Consecutive failures before recovery (overrides WATCHDOG_MAX_FAILURES)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides WATCHDOG_LOG_LEVEL)",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single health check and exit (0 if healthy, 1 otherwise)",
    )

    parser.add_argument(
        "--no-status-server",
        action="store_true",
        help="Do not serve the status endpoint",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
