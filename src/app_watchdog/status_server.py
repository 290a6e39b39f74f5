"""Background server for the status endpoint.

Runs uvicorn in a daemon thread alongside the monitoring loop.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import uvicorn
    from starlette.types import ASGIApp

from app_watchdog.logging import get_logger

logger = get_logger(__name__)

STARTUP_TIMEOUT = 5.0


class StatusServer:
    """Background uvicorn server for the status API.

    Example:
        app = create_app(reporter)
        server = StatusServer(host="127.0.0.1", port=3001)
        server.start(app)

        # ... run the monitor ...

        server.shutdown()
    """

    def __init__(self, host: str, port: int) -> None:
        self._host = host
        self._port = port
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._server is not None and self._server.started

    def start(self, app: ASGIApp) -> None:
        """Start serving in a background thread.

        Blocks until uvicorn reports that it has started, or until
        STARTUP_TIMEOUT elapses.
        """
        import uvicorn

        config = uvicorn.Config(
            app=app,
            host=self._host,
            port=self._port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        server = self._server

        self._thread = threading.Thread(
            target=server.run,
            name="status-server",
            daemon=True,
        )
        self._thread.start()

        start_wait = time.monotonic()
        while not server.started:
            if not self._thread.is_alive():
                raise RuntimeError(f"Status server exited during startup on port {self._port}")
            if time.monotonic() - start_wait > STARTUP_TIMEOUT:
                logger.warning("Status server startup timed out, continuing anyway")
                break
            time.sleep(0.05)

        if server.started:
            logger.info("Status endpoint available at http://%s:%s/monitor/status", self._host, self._port)

    def shutdown(self) -> None:
        """Stop the server and wait up to 5 seconds for its thread."""
        if self._server is None:
            return
        self._server.should_exit = True
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("Status server thread did not terminate gracefully")
        logger.debug("Status server shutdown complete")


__all__ = ["StatusServer"]
