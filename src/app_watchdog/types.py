"""Type definitions and enums for the watchdog.

This module centralizes the enums and value objects shared by the probe,
tracker, escalator and status reporter, replacing magic strings with
type-safe constants.

Usage:
    from app_watchdog.types import ProcessStatus, HealthState

    # StrEnum members compare equal to their string values
    if info.status == ProcessStatus.ONLINE:
        ...

    ProcessStatus.from_pm2("stopping")  # ProcessStatus.STOPPED
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class ProcessStatus(StrEnum):
    """Status of the managed process as reported by the supervisor.

    Values:
        ONLINE: Process is running ("online")
        STOPPED: Process is stopped or stopping ("stopped")
        ERRORED: Process crashed and the supervisor gave up ("errored")
        UNKNOWN: Any other or unavailable status ("unknown")
    """

    ONLINE = "online"
    STOPPED = "stopped"
    ERRORED = "errored"
    UNKNOWN = "unknown"

    @classmethod
    def from_pm2(cls, value: str | None) -> ProcessStatus:
        """Map a raw PM2 status string onto a ProcessStatus.

        Args:
            value: The ``pm2_env.status`` value, or None if missing.

        Returns:
            The matching ProcessStatus, UNKNOWN for unrecognized values.
        """
        if value == "stopping":
            return cls.STOPPED
        if value in cls._value2member_map_:
            return cls(value)
        return cls.UNKNOWN


class HealthState(StrEnum):
    """Health state derived from the consecutive failure counter.

    Values:
        HEALTHY: No consecutive failures ("healthy")
        DEGRADED: Failing, but below the escalation threshold ("degraded")
        CRITICAL: At or above the escalation threshold ("critical")
    """

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class FailureKind(StrEnum):
    """Why a health check cycle failed."""

    DEPENDENCY_DOWN = "dependency_down"
    SUPERVISOR_ERROR = "supervisor_error"
    PROCESS_NOT_ONLINE = "process_not_online"
    HTTP_UNHEALTHY = "http_unhealthy"


class MemoryPressure(StrEnum):
    """Memory usage level relative to the configured threshold."""

    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ProcessInfo:
    """A managed process entry from the supervisor's process table.

    Attributes:
        name: Process name registered with the supervisor.
        status: Normalized process status.
        memory_mb: Resident memory in megabytes (rounded).
        cpu_percent: CPU usage percentage.
        restart_count: Number of restarts performed by the supervisor.
        pid: Operating system process id, if running.
        uptime: Supervisor uptime timestamp (milliseconds since epoch), if known.
    """

    name: str
    status: ProcessStatus
    memory_mb: int = 0
    cpu_percent: float = 0.0
    restart_count: int = 0
    pid: int | None = None
    uptime: int | None = None

    @classmethod
    def from_pm2(cls, entry: dict[str, Any]) -> ProcessInfo:
        """Build a ProcessInfo from one element of ``pm2 jlist`` output.

        Args:
            entry: The raw process dictionary.

        Returns:
            ProcessInfo with memory converted from bytes to megabytes.
        """
        pm2_env = entry.get("pm2_env") or {}
        monit = entry.get("monit") or {}
        memory_bytes = monit.get("memory") or 0
        pid = entry.get("pid")
        return cls(
            name=str(entry.get("name", "")),
            status=ProcessStatus.from_pm2(pm2_env.get("status")),
            memory_mb=round(memory_bytes / 1024 / 1024),
            cpu_percent=float(monit.get("cpu") or 0.0),
            restart_count=int(pm2_env.get("restart_time") or 0),
            # PM2 reports pid 0 for processes that are not running
            pid=int(pid) if pid else None,
            uptime=pm2_env.get("pm_uptime"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "status": self.status.value,
            "memory_mb": self.memory_mb,
            "cpu_percent": self.cpu_percent,
            "restart_count": self.restart_count,
            "pid": self.pid,
            "uptime": self.uptime,
        }


@dataclass(frozen=True)
class HttpHealthResult:
    """Result of probing the application's HTTP health endpoint.

    Attributes:
        healthy: True only for a 200 response with an empty or JSON body.
        status_code: HTTP status code, if a response was received.
        body: Parsed JSON body, or raw text when not JSON.
        error: Description of the failure, if any.
    """

    healthy: bool
    status_code: int | None = None
    body: Any = None
    error: str | None = None

    def describe_failure(self) -> str:
        """Return a short description suitable for a log line."""
        if self.error:
            return self.error
        return f"HTTP {self.status_code}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {"healthy": self.healthy}
        if self.status_code is not None:
            result["status_code"] = self.status_code
        if self.body is not None:
            result["body"] = self.body
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class DependencyStatus:
    """Whether the dependency process is running.

    Attributes:
        name: Image name that was looked up.
        running: True if at least one matching process was found.
        details: Human-readable diagnostic.
    """

    name: str
    running: bool
    details: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"name": self.name, "running": self.running, "details": self.details}


@dataclass(frozen=True)
class HealthSnapshot:
    """Combined result of one round of probing.

    Ephemeral: it only outlives the cycle as a log line or inside a status
    response.
    """

    process_status: ProcessStatus = ProcessStatus.UNKNOWN
    memory_mb: int | None = None
    cpu_percent: float | None = None
    restart_count: int | None = None
    pid: int | None = None
    http_healthy: bool = False
    http_status_code: int | None = None
    dependency_running: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    error: str | None = None

    @classmethod
    def build(
        cls,
        dependency: DependencyStatus,
        process: ProcessInfo | None = None,
        http: HttpHealthResult | None = None,
        error: str | None = None,
    ) -> HealthSnapshot:
        """Assemble a snapshot from whichever sub-check results are available."""
        return cls(
            process_status=process.status if process else ProcessStatus.UNKNOWN,
            memory_mb=process.memory_mb if process else None,
            cpu_percent=process.cpu_percent if process else None,
            restart_count=process.restart_count if process else None,
            pid=process.pid if process else None,
            http_healthy=http.healthy if http else False,
            http_status_code=http.status_code if http else None,
            dependency_running=dependency.running,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "process_status": self.process_status.value,
            "memory_mb": self.memory_mb,
            "cpu_percent": self.cpu_percent,
            "restart_count": self.restart_count,
            "pid": self.pid,
            "http_healthy": self.http_healthy,
            "http_status_code": self.http_status_code,
            "dependency_running": self.dependency_running,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class CheckOutcome:
    """Tagged outcome of one health check cycle.

    Either ``healthy`` is True, or ``failure_kind`` and ``reason`` say why
    the cycle failed. ``process`` is populated whenever the supervisor was
    reached, so memory pressure can be evaluated on healthy outcomes.
    """

    healthy: bool
    snapshot: HealthSnapshot
    failure_kind: FailureKind | None = None
    reason: str | None = None
    process: ProcessInfo | None = None

    @classmethod
    def success(cls, snapshot: HealthSnapshot, process: ProcessInfo) -> CheckOutcome:
        return cls(healthy=True, snapshot=snapshot, process=process)

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        reason: str,
        snapshot: HealthSnapshot,
        process: ProcessInfo | None = None,
    ) -> CheckOutcome:
        return cls(
            healthy=False,
            snapshot=snapshot,
            failure_kind=kind,
            reason=reason,
            process=process,
        )


__all__ = [
    "CheckOutcome",
    "DependencyStatus",
    "FailureKind",
    "HealthSnapshot",
    "HealthState",
    "HttpHealthResult",
    "MemoryPressure",
    "ProcessInfo",
    "ProcessStatus",
]
