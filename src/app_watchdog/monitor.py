"""The monitoring loop.

:class:`Monitor` is the explicit monitor instance owned by the entry point.
It runs the probe → track → remediate pipeline on a background thread:

1. Wait for the warm-up delay.
2. Run one cycle (:meth:`Monitor.run_cycle`).
3. Sleep ``check_interval`` seconds and repeat until :meth:`Monitor.stop`.

A cycle that raises unexpectedly is logged and the loop carries on; the
watchdog must outlive every failure of the thing it watches.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from app_watchdog.config import MonitorConfig
from app_watchdog.exceptions import ProcessNotFoundError
from app_watchdog.logging import get_logger
from app_watchdog.probe import HealthProbe
from app_watchdog.recovery import EscalationResult, RecoveryAttempt, RecoveryEscalator
from app_watchdog.tracker import FailureTracker, TrackerUpdate
from app_watchdog.types import CheckOutcome, MemoryPressure

logger = get_logger(__name__)


@dataclass(frozen=True)
class CycleResult:
    """Everything one monitoring cycle produced.

    Attributes:
        outcome: The probe result, None if the cycle hit a configuration error.
            After a memory restart it is the online check without HTTP.
        update: The tracker update, None if the cycle recorded nothing.
        escalation: Remediation run because the failure threshold was crossed.
        memory_pressure: Memory classification of an online process.
        memory_restart: Restart triggered by critical memory usage.
        config_error: Set when the app is not registered with the supervisor.
    """

    outcome: CheckOutcome | None = None
    update: TrackerUpdate | None = None
    escalation: EscalationResult | None = None
    memory_pressure: MemoryPressure = MemoryPressure.NORMAL
    memory_restart: RecoveryAttempt | None = None
    config_error: str | None = None

    @property
    def healthy(self) -> bool:
        """True if the app passed the cycle, or a memory restart brought it back online."""
        if self.outcome is None or not self.outcome.healthy:
            return False
        return self.memory_restart is None or self.memory_restart.succeeded


class Monitor:
    """Schedules health check cycles and drives remediation.

    Thread Safety:
        ``run_cycle()`` holds a cycle lock, so at most one probe or recovery
        is in flight even if ``--once`` style callers and the background loop
        overlap. ``stop()`` may be called from any thread, including a signal
        handler; it never interrupts an in-flight cycle.
    """

    def __init__(
        self,
        config: MonitorConfig,
        probe: HealthProbe,
        tracker: FailureTracker,
        escalator: RecoveryEscalator,
    ) -> None:
        self.config = config
        self.probe = probe
        self.tracker = tracker
        self.escalator = escalator
        self._cycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Whether a loop is alive and has not been asked to stop.

        A stopped loop that is still finishing its in-flight cycle does not
        count as running.
        """
        thread = self._thread
        return thread is not None and thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> bool:
        """Start the background loop.

        Each loop gets its own stop event, so a loop started right after
        ``stop()`` is independent of the previous one, which finishes its
        in-flight cycle and exits.

        Returns:
            True if the loop was started, False if it was already running.
        """
        with self._state_lock:
            if self.is_running:
                logger.warning("Monitoring is already running")
                return False

            logger.info("Starting production monitoring...")
            stop_event = threading.Event()
            self._stop_event = stop_event
            self.tracker.set_monitoring_active(True)
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(stop_event,),
                name="app-watchdog-monitor",
                daemon=True,
            )
            self._thread.start()
            return True

    def stop(self) -> None:
        """Ask the loop to stop before its next cycle."""
        self._stop_event.set()
        self.tracker.set_monitoring_active(False)
        logger.info("Monitoring stopped")

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the loop thread to exit.

        Returns:
            True if the thread has exited (or was never started).
        """
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called. Returns True if stop was requested."""
        return self._stop_event.wait(timeout)

    def _run_loop(self, stop_event: threading.Event) -> None:
        try:
            if stop_event.wait(self.config.warmup_delay):
                return
            while not stop_event.is_set():
                try:
                    self.run_cycle()
                except Exception as e:
                    # Broad catch intentional: the loop must survive any cycle error
                    logger.exception("Monitoring error: %s", e)
                if stop_event.wait(self.config.check_interval):
                    break
        finally:
            # A superseded loop must not clear the flag of its replacement
            with self._state_lock:
                if self._stop_event is stop_event:
                    self.tracker.set_monitoring_active(False)

    def run_cycle(self) -> CycleResult:
        """Run one probe → track → remediate cycle.

        Memory is classified as soon as the app is known to be online, before
        the HTTP probe. Critical usage restarts the app and ends the cycle
        without probing HTTP or touching the failure counter.
        """
        with self._cycle_lock:
            try:
                outcome = self.probe.check_process()
            except ProcessNotFoundError as e:
                logger.critical("%s - check the configured app name", e)
                return CycleResult(config_error=str(e))

            if not outcome.healthy:
                return self._handle_failure(outcome)

            memory_mb = outcome.process.memory_mb if outcome.process else None
            pressure = self.tracker.memory_pressure(memory_mb)
            if pressure != MemoryPressure.NORMAL:
                logger.warning("High memory usage detected: %sMB", memory_mb)
            if pressure == MemoryPressure.CRITICAL:
                logger.warning("Memory usage critical, triggering restart")
                return CycleResult(
                    outcome=outcome,
                    memory_pressure=pressure,
                    memory_restart=self.escalator.restart(),
                )

            outcome = self.probe.check_http(outcome)
            if outcome.healthy:
                return self._handle_success(outcome, pressure)
            return self._handle_failure(outcome, pressure)

    def _handle_success(self, outcome: CheckOutcome, pressure: MemoryPressure) -> CycleResult:
        update = self.tracker.record_success()
        process = outcome.process
        logger.info(
            "Health check passed - Memory: %sMB, CPU: %s%%",
            process.memory_mb if process else None,
            process.cpu_percent if process else None,
        )
        if update.recovered_after:
            logger.info("Application recovered after %d failures", update.recovered_after)

        return CycleResult(outcome=outcome, update=update, memory_pressure=pressure)

    def _handle_failure(
        self,
        outcome: CheckOutcome,
        pressure: MemoryPressure = MemoryPressure.NORMAL,
    ) -> CycleResult:
        update = self.tracker.record_failure()
        failure_kind = outcome.failure_kind.value if outcome.failure_kind else None
        log = logger.with_context(app_name=self.config.app_name, failure_kind=failure_kind)
        log.error(
            "Health check failed (%d/%d): %s",
            update.consecutive_failures,
            self.config.max_failures,
            outcome.reason,
        )

        escalation = None
        if update.escalate:
            log.critical("Max consecutive failures reached, attempting recovery")
            escalation = self.escalator.escalate()

        return CycleResult(
            outcome=outcome,
            update=update,
            escalation=escalation,
            memory_pressure=pressure,
        )


__all__ = ["CycleResult", "Monitor"]
