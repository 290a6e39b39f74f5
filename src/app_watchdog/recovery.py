"""Staged remediation for a failing application.

Two tiers, tried in order:

1. **restart**: ``pm2 restart <app>``, wait for the process to settle, then
   confirm it is back online.
2. **force_recovery**: tear the registration down (``stop``, ``delete``) and
   recreate it from the ecosystem file, then ``pm2 save``.

Both tiers refuse to act while the dependency process is down: restarting
the app cannot fix a missing database and would only hide the real outage.
Every tier returns a :class:`RecoveryAttempt` instead of raising.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from app_watchdog.config import MonitorConfig
from app_watchdog.dependency import DependencyChecker
from app_watchdog.exceptions import CommandError
from app_watchdog.logging import get_logger
from app_watchdog.supervisor import Pm2Supervisor
from app_watchdog.tracker import FailureTracker
from app_watchdog.types import ProcessStatus

logger = get_logger(__name__)

DEFAULT_HISTORY_SIZE = 20


class RecoveryKind(StrEnum):
    """Remediation tier."""

    RESTART = "restart"
    FORCE_RECOVERY = "force_recovery"


class RecoveryOutcome(StrEnum):
    """How a remediation attempt ended.

    Values:
        SUCCEEDED: The tier completed and the app is considered recovered
        FAILED: A step raised or the app did not come back online
        BLOCKED: The dependency was down, so no supervisor command was issued
    """

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class RecoveryAttempt:
    """One remediation tier execution."""

    kind: RecoveryKind
    outcome: RecoveryOutcome
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == RecoveryOutcome.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "outcome": self.outcome.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.detail:
            result["detail"] = self.detail
        return result


@dataclass(frozen=True)
class EscalationResult:
    """Attempts made for one escalation event, in order."""

    attempts: tuple[RecoveryAttempt, ...]

    @property
    def recovered(self) -> bool:
        return any(attempt.succeeded for attempt in self.attempts)


class RecoveryEscalator:
    """Runs the remediation tiers against the supervisor.

    Tiers are serialized by a lock, so a manual call and the monitor loop
    can never interleave supervisor commands.
    """

    def __init__(
        self,
        config: MonitorConfig,
        supervisor: Pm2Supervisor,
        dependency_checker: DependencyChecker,
        tracker: FailureTracker,
        sleep: Callable[[float], None] = time.sleep,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        """Initialize the escalator.

        Args:
            config: Watchdog configuration (app name and settle delays).
            supervisor: PM2 client used for the remediation commands.
            dependency_checker: Checked before every tier.
            tracker: Reset when a tier succeeds.
            sleep: Sleep function for settle delays; tests pass a recorder.
            history_size: Number of recent attempts kept for status reports.
        """
        self.config = config
        self.supervisor = supervisor
        self.dependency_checker = dependency_checker
        self.tracker = tracker
        self._sleep = sleep
        self._lock = threading.Lock()
        self._history_lock = threading.Lock()
        self._history: deque[RecoveryAttempt] = deque(maxlen=history_size)

    def _record(self, attempt: RecoveryAttempt) -> RecoveryAttempt:
        with self._history_lock:
            self._history.append(attempt)
        if attempt.succeeded:
            self.tracker.record_recovery()
        return attempt

    def restart(self) -> RecoveryAttempt:
        """Tier 1: graceful restart followed by an online check."""
        with self._lock:
            return self._record(self._restart())

    def _restart(self) -> RecoveryAttempt:
        app_name = self.config.app_name
        dependency = self.dependency_checker.check()
        if not dependency.running:
            logger.error(
                "Cannot restart app - %s is not running (%s)",
                dependency.name,
                dependency.details,
            )
            return RecoveryAttempt(
                RecoveryKind.RESTART,
                RecoveryOutcome.BLOCKED,
                detail=f"{dependency.name} is not running",
            )

        logger.warning("Attempting to restart application...")
        try:
            self.supervisor.restart(app_name)
            logger.info("PM2 restart command sent for %s", app_name)

            self._sleep(self.config.restart_settle_delay)

            process = self.supervisor.get_process(app_name)
        except Exception as e:
            # Broad catch intentional: a tier reports failure, it never raises
            logger.error("Restart failed: %s", e)
            return RecoveryAttempt(RecoveryKind.RESTART, RecoveryOutcome.FAILED, detail=str(e))

        if process.status == ProcessStatus.ONLINE:
            logger.info("Application is online after restart (PID: %s)", process.pid)
            return RecoveryAttempt(
                RecoveryKind.RESTART,
                RecoveryOutcome.SUCCEEDED,
                detail=f"online with PID {process.pid}",
            )

        logger.error("Restart failed: app is %s after restart", process.status)
        return RecoveryAttempt(
            RecoveryKind.RESTART,
            RecoveryOutcome.FAILED,
            detail=f"app is {process.status} after restart",
        )

    def force_recovery(self) -> RecoveryAttempt:
        """Tier 2: recreate the app's registration from the ecosystem file.

        ``stop`` and ``delete`` are allowed to fail (the app may already be
        gone). A failure of ``start`` or ``save`` fails the tier. There is no
        health re-check afterwards; the next polling cycle does that.
        """
        with self._lock:
            return self._record(self._force_recovery())

    def _force_recovery(self) -> RecoveryAttempt:
        app_name = self.config.app_name
        logger.critical("Performing force recovery...")

        dependency = self.dependency_checker.check()
        if not dependency.running:
            logger.critical(
                "Cannot recover - %s is not running. Start %s first.",
                dependency.name,
                dependency.name,
            )
            return RecoveryAttempt(
                RecoveryKind.FORCE_RECOVERY,
                RecoveryOutcome.BLOCKED,
                detail=f"{dependency.name} is not running",
            )

        try:
            self._tolerant(self.supervisor.stop, app_name, "stop")
            self._sleep(self.config.force_recovery_step_delay)

            self._tolerant(self.supervisor.delete, app_name, "delete")
            self._sleep(self.config.force_recovery_step_delay)

            self.supervisor.start_from_config()
            self._sleep(self.config.force_recovery_settle_delay)

            self.supervisor.save()
        except Exception as e:
            # Broad catch intentional: a tier reports failure, it never raises
            logger.critical("Force recovery failed: %s", e)
            return RecoveryAttempt(
                RecoveryKind.FORCE_RECOVERY, RecoveryOutcome.FAILED, detail=str(e)
            )

        logger.info("Force recovery completed")
        return RecoveryAttempt(RecoveryKind.FORCE_RECOVERY, RecoveryOutcome.SUCCEEDED)

    @staticmethod
    def _tolerant(action: Callable[[str], None], app_name: str, step: str) -> None:
        try:
            action(app_name)
        except CommandError as e:
            logger.debug("PM2 %s of %s failed, continuing: %s", step, app_name, e)

    def escalate(self) -> EscalationResult:
        """Run the tiers in order, stopping at the first success."""
        attempts = [self.restart()]
        if not attempts[0].succeeded:
            attempts.append(self.force_recovery())

        result = EscalationResult(attempts=tuple(attempts))
        if not result.recovered:
            logger.critical(
                "All recovery attempts failed for %s; monitoring continues",
                self.config.app_name,
            )
        return result

    def recent_attempts(self) -> list[RecoveryAttempt]:
        """Return the most recent attempts, oldest first."""
        with self._history_lock:
            return list(self._history)


__all__ = [
    "DEFAULT_HISTORY_SIZE",
    "EscalationResult",
    "RecoveryAttempt",
    "RecoveryEscalator",
    "RecoveryKind",
    "RecoveryOutcome",
]
