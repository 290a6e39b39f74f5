"""Health probing for the managed application.

Three independent sub-checks are combined into one result per cycle:

- Supervisor: is the app registered with PM2, is it online, how much memory
  and CPU does it use?
- HTTP: does ``GET <health_check_url>`` answer 200 within the timeout?
- Dependency: is the database process running?

Only the supervisor sub-check raises, and only for the misconfiguration case
where the app is missing from the process table. Everything else degrades
into a tagged :class:`~app_watchdog.types.CheckOutcome`.

Usage:
    probe = HealthProbe(config, supervisor, dependency_checker)
    outcome = probe.check()
    if not outcome.healthy:
        print(outcome.failure_kind, outcome.reason)
"""

from __future__ import annotations

from dataclasses import replace

import httpx

from app_watchdog.config import MonitorConfig
from app_watchdog.dependency import DependencyChecker
from app_watchdog.exceptions import ProcessNotFoundError, SupervisorError
from app_watchdog.logging import get_logger
from app_watchdog.supervisor import Pm2Supervisor
from app_watchdog.types import (
    CheckOutcome,
    DependencyStatus,
    FailureKind,
    HealthSnapshot,
    HttpHealthResult,
    ProcessInfo,
    ProcessStatus,
)

logger = get_logger(__name__)

HTTP_TIMEOUT_ERROR = "timeout"


class HealthProbe:
    """Runs the supervisor, HTTP and dependency sub-checks.

    The sub-checks share no mutable state. They run sequentially so that
    log output stays in a deterministic order.
    """

    def __init__(
        self,
        config: MonitorConfig,
        supervisor: Pm2Supervisor,
        dependency_checker: DependencyChecker,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            config: Watchdog configuration.
            supervisor: PM2 client used for the process table lookup.
            dependency_checker: Checker for the dependency process.
            transport: Optional httpx transport, used by tests to stub the
                health endpoint.
        """
        self.config = config
        self.supervisor = supervisor
        self.dependency_checker = dependency_checker
        self._transport = transport

    def probe_supervisor(self) -> ProcessInfo:
        """Look up the managed app in the supervisor's process table.

        Raises:
            ProcessNotFoundError: If the app is not registered (not retryable).
            SupervisorError: If the process table cannot be read.
        """
        return self.supervisor.get_process(self.config.app_name)

    def probe_http_health(self) -> HttpHealthResult:
        """Probe the HTTP health endpoint. Never raises.

        A 200 response with an empty or JSON body is healthy. Any other status,
        a body that is not JSON, a network error or a timeout is unhealthy.
        When the timeout fires, httpx abandons the in-flight request and closes
        its connection before the result is returned.
        """
        url = self.config.health_check_url
        try:
            with httpx.Client(
                timeout=httpx.Timeout(self.config.http_timeout),
                transport=self._transport,
                trust_env=False,
            ) as client:
                response = client.get(url)
        except httpx.TimeoutException:
            logger.debug("Health endpoint %s timed out after %ss", url, self.config.http_timeout)
            return HttpHealthResult(healthy=False, error=HTTP_TIMEOUT_ERROR)
        except httpx.RequestError as e:
            logger.debug("Health endpoint %s request error: %s", url, e)
            return HttpHealthResult(healthy=False, error=str(e) or type(e).__name__)
        except Exception as e:
            # Broad catch intentional: the HTTP probe must never raise
            logger.error("Unexpected error probing health endpoint %s: %s", url, e)
            return HttpHealthResult(healthy=False, error=f"{type(e).__name__}: {e}")

        status_code = response.status_code
        if not response.content:
            return HttpHealthResult(healthy=status_code == 200, status_code=status_code)

        try:
            body = response.json()
        except ValueError:
            return HttpHealthResult(
                healthy=False,
                status_code=status_code,
                body=response.text,
                error=f"HTTP {status_code} with unparseable body",
            )

        return HttpHealthResult(healthy=status_code == 200, status_code=status_code, body=body)

    def probe_dependency(self) -> DependencyStatus:
        """Check the dependency process. Never raises."""
        return self.dependency_checker.check()

    def check(self) -> CheckOutcome:
        """Run one health check cycle.

        Equivalent to :meth:`check_process` followed, when the app is online,
        by :meth:`check_http`.

        Raises:
            ProcessNotFoundError: If the app is missing from the supervisor.
        """
        outcome = self.check_process()
        if not outcome.healthy:
            return outcome
        return self.check_http(outcome)

    def check_process(self) -> CheckOutcome:
        """Check the dependency and the supervisor entry, but not HTTP.

        The dependency is checked first; if it is down the cycle fails as a
        dependency outage without probing the app at all. A healthy result
        means the app is online; its ``process`` carries memory and CPU.

        Raises:
            ProcessNotFoundError: If the app is missing from the supervisor.
        """
        dependency = self.probe_dependency()
        if not dependency.running:
            return CheckOutcome.failure(
                FailureKind.DEPENDENCY_DOWN,
                f"{dependency.name} is not running ({dependency.details})",
                HealthSnapshot.build(dependency),
            )

        try:
            process = self.probe_supervisor()
        except ProcessNotFoundError:
            raise
        except SupervisorError as e:
            return CheckOutcome.failure(
                FailureKind.SUPERVISOR_ERROR,
                str(e),
                HealthSnapshot.build(dependency, error=str(e)),
            )

        if process.status != ProcessStatus.ONLINE:
            return CheckOutcome.failure(
                FailureKind.PROCESS_NOT_ONLINE,
                f"App is {process.status}, expected online",
                HealthSnapshot.build(dependency, process),
                process=process,
            )

        return CheckOutcome.success(HealthSnapshot.build(dependency, process), process)

    def check_http(self, online: CheckOutcome) -> CheckOutcome:
        """Finish a cycle that passed :meth:`check_process` with the HTTP probe."""
        http = self.probe_http_health()
        snapshot = replace(
            online.snapshot,
            http_healthy=http.healthy,
            http_status_code=http.status_code,
        )
        if not http.healthy:
            return CheckOutcome.failure(
                FailureKind.HTTP_UNHEALTHY,
                f"Health check failed: {http.describe_failure()}",
                snapshot,
                process=online.process,
            )

        return CheckOutcome.success(snapshot, online.process)

    def snapshot(self) -> HealthSnapshot:
        """Re-probe all three sub-checks without short-circuiting. Never raises.

        Used for on-demand status reporting; any supervisor error, including a
        missing app, is captured in the snapshot's ``error`` field.
        """
        dependency = self.probe_dependency()
        process: ProcessInfo | None = None
        error: str | None = None
        try:
            process = self.probe_supervisor()
        except SupervisorError as e:
            error = str(e)
        except Exception as e:
            # Broad catch intentional: status snapshots must never raise
            logger.error("Unexpected error probing supervisor: %s", e)
            error = f"{type(e).__name__}: {e}"
        http = self.probe_http_health()
        return HealthSnapshot.build(dependency, process, http, error=error)


__all__ = ["HTTP_TIMEOUT_ERROR", "HealthProbe"]
