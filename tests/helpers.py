"""Test helper functions for the watchdog tests.

These helpers build configurations, process entries and fully wired
components with sensible test defaults: zero delays, no status server.

Usage::

    from tests.helpers import build_watchdog, make_config, make_process

    def test_example():
        config = make_config(max_failures=3)
        watchdog = build_watchdog(config, processes=[make_process(memory_mb=950)])
        watchdog.monitor.run_cycle()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from app_watchdog.config import MonitorConfig
from app_watchdog.monitor import Monitor
from app_watchdog.probe import HealthProbe
from app_watchdog.recovery import RecoveryEscalator
from app_watchdog.tracker import FailureTracker
from app_watchdog.types import ProcessInfo, ProcessStatus
from tests.mocks import FakeDependencyChecker, FakeSupervisor, RecordingSleep

APP_NAME = "internal-cms"
HEALTH_URL = "http://localhost:3000/health"


def make_config(**overrides: Any) -> MonitorConfig:
    """Create a MonitorConfig with test-friendly defaults."""
    defaults: dict[str, Any] = {
        "app_name": APP_NAME,
        "health_check_url": HEALTH_URL,
        "check_interval": 0.01,
        "warmup_delay": 0.0,
        "restart_settle_delay": 0.0,
        "force_recovery_settle_delay": 0.0,
        "force_recovery_step_delay": 0.0,
        "http_timeout": 1.0,
        "status_enabled": False,
    }
    defaults.update(overrides)
    return MonitorConfig(**defaults)


def make_process(
    name: str = APP_NAME,
    status: ProcessStatus = ProcessStatus.ONLINE,
    memory_mb: int = 256,
    cpu_percent: float = 1.5,
    pid: int | None = 4242,
) -> ProcessInfo:
    """Create a ProcessInfo for the fake supervisor."""
    return ProcessInfo(
        name=name,
        status=status,
        memory_mb=memory_mb,
        cpu_percent=cpu_percent,
        restart_count=0,
        pid=pid,
    )


def pm2_entry(
    name: str = APP_NAME,
    status: str = "online",
    memory_bytes: int = 256 * 1024 * 1024,
    cpu: float = 1.5,
    pid: int = 4242,
    restart_time: int = 2,
) -> dict[str, Any]:
    """Create one element of ``pm2 jlist`` output."""
    return {
        "name": name,
        "pid": pid,
        "pm2_env": {"status": status, "restart_time": restart_time, "pm_uptime": 1700000000000},
        "monit": {"memory": memory_bytes, "cpu": cpu},
    }


def json_transport(status_code: int = 200, body: Any = None) -> httpx.MockTransport:
    """Transport that answers every request with the given JSON body."""
    payload = {"status": "ok"} if body is None else body

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


def handler_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


@dataclass
class Watchdog:
    """A wired set of components backed by fakes."""

    config: MonitorConfig
    supervisor: FakeSupervisor
    dependency: FakeDependencyChecker
    sleep: RecordingSleep
    probe: HealthProbe
    tracker: FailureTracker
    escalator: RecoveryEscalator
    monitor: Monitor


def build_watchdog(
    config: MonitorConfig | None = None,
    processes: list[ProcessInfo] | None = None,
    dependency_running: bool = True,
    transport: httpx.BaseTransport | None = None,
) -> Watchdog:
    """Wire probe, tracker, escalator and monitor against fakes."""
    config = config or make_config()
    supervisor = FakeSupervisor([make_process()] if processes is None else processes)
    dependency = FakeDependencyChecker(running=dependency_running)
    sleep = RecordingSleep()
    probe = HealthProbe(
        config,
        supervisor,  # type: ignore[arg-type]
        dependency,  # type: ignore[arg-type]
        transport=transport or json_transport(),
    )
    tracker = FailureTracker.from_config(config)
    escalator = RecoveryEscalator(
        config,
        supervisor,  # type: ignore[arg-type]
        dependency,  # type: ignore[arg-type]
        tracker,
        sleep=sleep,
    )
    monitor = Monitor(config, probe, tracker, escalator)
    return Watchdog(
        config=config,
        supervisor=supervisor,
        dependency=dependency,
        sleep=sleep,
        probe=probe,
        tracker=tracker,
        escalator=escalator,
        monitor=monitor,
    )
