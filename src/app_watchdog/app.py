"""Core application runner.

Coordinates the status server lifecycle, the monitoring loop and the
single-check mode.

Status-server-less operation:
    The status endpoint is optional. If it fails to start (port in use,
    missing dependency, anything else) a warning is logged and monitoring
    continues without it.
"""

from __future__ import annotations

import argparse

from app_watchdog.bootstrap import BootstrapContext, bootstrap
from app_watchdog.cli import parse_args
from app_watchdog.logging import get_logger
from app_watchdog.monitor import Monitor
from app_watchdog.shutdown import create_shutdown_handler
from app_watchdog.status_server import StatusServer

logger = get_logger(__name__)

SHUTDOWN_GRACE_PERIOD = 60.0


def start_status_server(context: BootstrapContext) -> StatusServer | None:
    """Start the status server if enabled.

    Returns:
        StatusServer if started successfully, None otherwise.
    """
    config = context.config
    if not config.status_enabled:
        logger.info("Status endpoint is disabled via configuration")
        return None

    try:
        from app_watchdog.status_api import create_app

        app = create_app(context.container.reporter())
        server = StatusServer(host=config.status_host, port=config.status_port)
        server.start(app)
        return server
    except ImportError as e:
        logger.warning(
            "Status server startup failed: dependencies not available. "
            "Monitoring will continue without the status endpoint. Error: %s",
            e,
        )
        return None
    except (OSError, RuntimeError) as e:
        logger.warning(
            "Status server startup failed on %s:%s. "
            "Monitoring will continue without the status endpoint. Error: %s",
            config.status_host,
            config.status_port,
            e,
        )
        return None
    except Exception as e:
        # Broad catch intentional: the status endpoint must never stop monitoring
        logger.warning(
            "Status server startup failed: unexpected error (%s). "
            "Monitoring will continue without the status endpoint. Error: %s",
            type(e).__name__,
            e,
        )
        return None


def run_once_mode(monitor: Monitor) -> int:
    """Run a single health check cycle.

    Returns:
        Exit code: 0 if the app is healthy, 1 otherwise.
    """
    logger.info("Running single health check (--once mode)")
    result = monitor.run_cycle()
    return 0 if result.healthy else 1


def run_continuous_mode(monitor: Monitor) -> int:
    """Run the monitoring loop until SIGINT or SIGTERM.

    After the stop request the in-flight cycle gets up to
    SHUTDOWN_GRACE_PERIOD seconds to finish. A cycle still running after
    that is abandoned with the daemon loop thread.

    Returns:
        Exit code: 0 after a graceful shutdown.
    """
    create_shutdown_handler(monitor.stop)
    monitor.start()
    # Short waits keep the main thread responsive to signals on every platform
    while not monitor.wait(timeout=1.0):
        pass
    if not monitor.join(timeout=SHUTDOWN_GRACE_PERIOD):
        logger.warning(
            "Monitoring cycle still running after %ss, exiting without it",
            SHUTDOWN_GRACE_PERIOD,
        )
    return 0


def run_application(parsed: argparse.Namespace, context: BootstrapContext) -> int:
    """Run the watchdog with the given context."""
    monitor = context.container.monitor()

    if parsed.once:
        return run_once_mode(monitor)

    status_server = start_status_server(context)
    try:
        return run_continuous_mode(monitor)
    finally:
        if status_server is not None:
            status_server.shutdown()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application.
    """
    parsed = parse_args(args)

    context = bootstrap(parsed)
    if context is None:
        return 1

    return run_application(parsed, context)


__all__ = [
    "main",
    "run_application",
    "run_continuous_mode",
    "run_once_mode",
    "start_status_server",
]
