"""Failure tracking and health state derivation.

The tracker turns the stream of per-cycle probe results into a health state:

- HEALTHY: no consecutive failures
- DEGRADED: 0 < consecutive failures < max_failures
- CRITICAL: consecutive failures >= max_failures

Escalation is edge-triggered. ``record_failure()`` returns ``escalate=True``
on the failure that crosses the threshold, and not again while the counter
stays above it. A successful check or a successful recovery resets the
counter and re-arms the trigger. If remediation keeps failing, the trigger
re-arms after another full run of ``max_failures`` failures, so a dead app
is retried periodically but never on consecutive cycles.

Memory pressure is evaluated separately and never touches the counters: a
process using too much memory is a resource problem, not a failure.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app_watchdog.types import HealthState, MemoryPressure

if TYPE_CHECKING:
    from app_watchdog.config import MonitorConfig


@dataclass(frozen=True)
class FailureState:
    """Point-in-time copy of the tracker's counters.

    Attributes:
        consecutive_failures: Failed cycles since the last success or recovery.
        total_failures: All failed cycles since startup (reporting only).
        last_health_check: When the last successful health check completed.
        monitoring_active: Whether the monitoring loop is running.
        health_state: State derived from consecutive_failures.
    """

    consecutive_failures: int
    total_failures: int
    last_health_check: datetime | None
    monitoring_active: bool
    health_state: HealthState

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "consecutive_failures": self.consecutive_failures,
            "total_failures": self.total_failures,
            "last_health_check": (
                self.last_health_check.isoformat() if self.last_health_check else None
            ),
            "monitoring": self.monitoring_active,
            "health_state": self.health_state.value,
        }


@dataclass(frozen=True)
class TrackerUpdate:
    """Result of recording one cycle outcome.

    Attributes:
        previous_state: State before the outcome was recorded.
        state: State after the outcome was recorded.
        consecutive_failures: Counter value after the update.
        escalate: True exactly when remediation should start now.
        recovered_after: On success, how many failures preceded it (None if none).
    """

    previous_state: HealthState
    state: HealthState
    consecutive_failures: int
    escalate: bool = False
    recovered_after: int | None = None


class FailureTracker:
    """Maintains failure counters and derives the health state.

    Thread-safe: the monitor thread records outcomes while the status
    endpoint reads snapshots.
    """

    def __init__(
        self,
        max_failures: int,
        critical_memory_threshold: int,
        memory_restart_margin: int = 200,
    ) -> None:
        """Initialize the tracker.

        Args:
            max_failures: Consecutive failures that trigger escalation.
            critical_memory_threshold: Memory (MB) above which usage is high.
            memory_restart_margin: Extra MB above the threshold that trigger
                a pre-emptive restart.

        Raises:
            ValueError: If max_failures is less than 1.
        """
        if max_failures < 1:
            raise ValueError(f"max_failures must be at least 1, got {max_failures}")
        self._max_failures = max_failures
        self._critical_memory_threshold = critical_memory_threshold
        self._memory_restart_margin = memory_restart_margin
        self._lock = threading.Lock()
        self._consecutive_failures = 0
        self._total_failures = 0
        self._last_health_check: datetime | None = None
        self._monitoring_active = False
        self._next_escalation_at = max_failures

    @classmethod
    def from_config(cls, config: MonitorConfig) -> FailureTracker:
        """Create a FailureTracker from watchdog configuration."""
        return cls(
            max_failures=config.max_failures,
            critical_memory_threshold=config.critical_memory_threshold,
            memory_restart_margin=config.memory_restart_margin,
        )

    @property
    def max_failures(self) -> int:
        return self._max_failures

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._consecutive_failures

    @property
    def total_failures(self) -> int:
        with self._lock:
            return self._total_failures

    @property
    def state(self) -> HealthState:
        with self._lock:
            return self._state_for(self._consecutive_failures)

    @property
    def monitoring_active(self) -> bool:
        with self._lock:
            return self._monitoring_active

    def set_monitoring_active(self, active: bool) -> None:
        with self._lock:
            self._monitoring_active = active

    def _state_for(self, consecutive_failures: int) -> HealthState:
        if consecutive_failures == 0:
            return HealthState.HEALTHY
        if consecutive_failures < self._max_failures:
            return HealthState.DEGRADED
        return HealthState.CRITICAL

    def record_success(self) -> TrackerUpdate:
        """Record a healthy cycle: reset the counter and re-arm escalation."""
        with self._lock:
            previous = self._consecutive_failures
            previous_state = self._state_for(previous)
            self._consecutive_failures = 0
            self._next_escalation_at = self._max_failures
            self._last_health_check = datetime.now(UTC)
            return TrackerUpdate(
                previous_state=previous_state,
                state=HealthState.HEALTHY,
                consecutive_failures=0,
                recovered_after=previous if previous > 0 else None,
            )

    def record_failure(self) -> TrackerUpdate:
        """Record a failed cycle and decide whether to escalate now."""
        with self._lock:
            previous_state = self._state_for(self._consecutive_failures)
            self._consecutive_failures += 1
            self._total_failures += 1
            escalate = self._consecutive_failures >= self._next_escalation_at
            if escalate:
                # Latch until the next full run of failures
                self._next_escalation_at = self._consecutive_failures + self._max_failures
            return TrackerUpdate(
                previous_state=previous_state,
                state=self._state_for(self._consecutive_failures),
                consecutive_failures=self._consecutive_failures,
                escalate=escalate,
            )

    def record_recovery(self) -> None:
        """Record a successful remediation: reset the counter and re-arm escalation."""
        with self._lock:
            self._consecutive_failures = 0
            self._next_escalation_at = self._max_failures

    def memory_pressure(self, memory_mb: int | None) -> MemoryPressure:
        """Classify memory usage against the configured thresholds."""
        if memory_mb is None or memory_mb <= self._critical_memory_threshold:
            return MemoryPressure.NORMAL
        if memory_mb > self._critical_memory_threshold + self._memory_restart_margin:
            return MemoryPressure.CRITICAL
        return MemoryPressure.HIGH

    def snapshot(self) -> FailureState:
        """Return a consistent copy of the current counters."""
        with self._lock:
            return FailureState(
                consecutive_failures=self._consecutive_failures,
                total_failures=self._total_failures,
                last_health_check=self._last_health_check,
                monitoring_active=self._monitoring_active,
                health_state=self._state_for(self._consecutive_failures),
            )


__all__ = ["FailureState", "FailureTracker", "TrackerUpdate"]
