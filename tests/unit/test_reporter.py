"""Tests for the status reporter."""

from __future__ import annotations

from unittest.mock import patch

from app_watchdog.reporter import StatusReporter
from app_watchdog.types import ProcessStatus
from tests.helpers import Watchdog, build_watchdog, make_config, make_process


def reporter_for(watchdog: Watchdog) -> StatusReporter:
    return StatusReporter(watchdog.probe, watchdog.tracker, watchdog.escalator)


class TestStatusReporter:
    """Tests for get_status()."""

    def test_healthy_status(self) -> None:
        watchdog = build_watchdog()
        status = reporter_for(watchdog).get_status()

        assert status["app_name"] == "internal-cms"
        assert status["monitoring"] is False
        assert status["health_state"] == "healthy"
        assert status["consecutive_failures"] == 0
        assert status["max_failures"] == 5
        assert status["health"]["process_status"] == "online"
        assert status["health"]["http_healthy"] is True
        assert status["health"]["dependency_running"] is True
        assert status["recent_recoveries"] == []
        assert "error" not in status
        assert "timestamp" in status

    def test_reflects_tracker_state(self) -> None:
        watchdog = build_watchdog(config=make_config(max_failures=3))
        watchdog.tracker.set_monitoring_active(True)
        for _ in range(2):
            watchdog.tracker.record_failure()

        status = reporter_for(watchdog).get_status()

        assert status["monitoring"] is True
        assert status["health_state"] == "degraded"
        assert status["consecutive_failures"] == 2
        assert status["total_failures"] == 2

    def test_re_probes_on_every_call(self) -> None:
        watchdog = build_watchdog()
        reporter = reporter_for(watchdog)

        assert reporter.get_status()["health"]["process_status"] == "online"
        watchdog.supervisor.processes["internal-cms"] = make_process(status=ProcessStatus.STOPPED)
        assert reporter.get_status()["health"]["process_status"] == "stopped"

    def test_includes_recent_recoveries(self) -> None:
        watchdog = build_watchdog()
        watchdog.escalator.restart()

        recoveries = reporter_for(watchdog).get_status()["recent_recoveries"]

        assert len(recoveries) == 1
        assert recoveries[0]["kind"] == "restart"
        assert recoveries[0]["outcome"] == "succeeded"

    def test_missing_app_reported_as_error(self) -> None:
        status = reporter_for(build_watchdog(processes=[])).get_status()
        assert status["error"] == "App internal-cms not found in PM2"
        assert status["health"]["process_status"] == "unknown"

    def test_never_raises(self) -> None:
        watchdog = build_watchdog()
        with patch.object(watchdog.probe, "snapshot", side_effect=RuntimeError("probe crashed")):
            status = reporter_for(watchdog).get_status()

        assert status["health"] is None
        assert status["error"] == "RuntimeError: probe crashed"
