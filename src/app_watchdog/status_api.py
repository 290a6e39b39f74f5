"""HTTP status surface for the watchdog.

Routes:
- /monitor/status: Full status report, re-probed on every request
- /health/live: Liveness of the watchdog process itself
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, FastAPI

from app_watchdog.reporter import StatusReporter


def create_routes(reporter: StatusReporter) -> APIRouter:
    """Create the status routes.

    Args:
        reporter: Source of the status report.

    Returns:
        An APIRouter with the status routes configured.
    """
    router = APIRouter()

    # Plain def: the report runs blocking subprocess and HTTP probes, so
    # FastAPI executes it in its threadpool instead of on the event loop.
    @router.get("/monitor/status")
    def monitor_status() -> dict[str, Any]:
        """Return the current watchdog status."""
        return reporter.get_status()

    @router.get("/health/live")
    async def health_live() -> dict[str, Any]:
        """Liveness probe endpoint.

        Only confirms that the watchdog is serving requests; it does not
        probe the managed application.
        """
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "monitoring": reporter.tracker.monitoring_active,
        }

    return router


def create_app(reporter: StatusReporter) -> FastAPI:
    """Create the FastAPI status application."""
    app = FastAPI(
        title="App Watchdog",
        description="Status endpoint for the application watchdog",
        version="0.1.0",
    )
    app.include_router(create_routes(reporter))
    return app


__all__ = ["create_app", "create_routes"]
