"""On-demand status reporting.

The status report always re-probes the application; nothing is cached
between requests, so a report reflects the world at the moment it was asked
for rather than at the last polling cycle.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from app_watchdog.logging import get_logger
from app_watchdog.probe import HealthProbe
from app_watchdog.recovery import RecoveryEscalator
from app_watchdog.tracker import FailureTracker

logger = get_logger(__name__)


class StatusReporter:
    """Builds the status document served by the status endpoint."""

    def __init__(
        self,
        probe: HealthProbe,
        tracker: FailureTracker,
        escalator: RecoveryEscalator,
    ) -> None:
        self.probe = probe
        self.tracker = tracker
        self.escalator = escalator

    def get_status(self) -> dict[str, Any]:
        """Return the current status. Never raises.

        Returns:
            Dictionary with the app name, failure counters, monitoring flag,
            a fresh health snapshot, recent recovery attempts and a timestamp.
            Probe failures are reported under ``error``.
        """
        state = self.tracker.snapshot()
        status: dict[str, Any] = {
            "app_name": self.probe.config.app_name,
            "monitoring": state.monitoring_active,
            "health_state": state.health_state.value,
            "consecutive_failures": state.consecutive_failures,
            "total_failures": state.total_failures,
            "max_failures": self.tracker.max_failures,
            "last_health_check": (
                state.last_health_check.isoformat() if state.last_health_check else None
            ),
            "recent_recoveries": [a.to_dict() for a in self.escalator.recent_attempts()],
            "timestamp": datetime.now(UTC).isoformat(),
        }

        try:
            snapshot = self.probe.snapshot()
        except Exception as e:
            # Broad catch intentional: status requests must never fail
            logger.error("Status snapshot failed: %s", e)
            status["health"] = None
            status["error"] = f"{type(e).__name__}: {e}"
            return status

        status["health"] = snapshot.to_dict()
        if snapshot.error:
            status["error"] = snapshot.error
        return status


__all__ = ["StatusReporter"]
