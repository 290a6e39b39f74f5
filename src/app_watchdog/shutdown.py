"""Signal-driven shutdown for the watchdog process.

The first SIGINT or SIGTERM asks the monitor to stop: no new cycle starts,
and a probe or recovery already running is allowed to finish. A second
signal while that cycle is still running ends the process at once with
:data:`FORCED_EXIT_CODE`; the loop thread is a daemon and dies with it.
"""

from __future__ import annotations

import signal
from collections.abc import Callable
from types import FrameType

from app_watchdog.logging import get_logger

logger = get_logger(__name__)

FORCED_EXIT_CODE = 1

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownHandler:
    """Routes shutdown signals to a stop callback, usually ``Monitor.stop``."""

    def __init__(self, on_shutdown: Callable[[], None] | None = None) -> None:
        self._on_shutdown = on_shutdown
        self._signals_received = 0

    @property
    def shutdown_requested(self) -> bool:
        return self._signals_received > 0

    def request_shutdown(self) -> None:
        """Stop the monitor. Only the first request reaches the callback."""
        self._signals_received += 1
        if self._signals_received > 1:
            return
        logger.info("Shutting down monitor...")
        if self._on_shutdown is not None:
            self._on_shutdown()

    def handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """Signal handler: stop on the first signal, exit on the second.

        Raises:
            SystemExit: On a repeated signal, with FORCED_EXIT_CODE.
        """
        name = signal.Signals(signum).name
        if self.shutdown_requested:
            logger.warning("Received %s again, exiting without waiting for the current cycle", name)
            raise SystemExit(FORCED_EXIT_CODE)
        logger.info("Received %s, finishing the current cycle before exit", name)
        self.request_shutdown()

    def install(self) -> None:
        for signum in SHUTDOWN_SIGNALS:
            signal.signal(signum, self.handle_signal)
        logger.debug("Shutdown handler installed for %s", ", ".join(s.name for s in SHUTDOWN_SIGNALS))


def create_shutdown_handler(on_shutdown: Callable[[], None] | None = None) -> ShutdownHandler:
    """Create a ShutdownHandler and install it for SIGINT and SIGTERM."""
    handler = ShutdownHandler(on_shutdown)
    handler.install()
    return handler


__all__ = [
    "FORCED_EXIT_CODE",
    "SHUTDOWN_SIGNALS",
    "ShutdownHandler",
    "create_shutdown_handler",
]
