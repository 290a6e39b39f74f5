"""Tests for the status HTTP API."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app_watchdog.reporter import StatusReporter
from app_watchdog.status_api import create_app
from tests.helpers import Watchdog, build_watchdog


def client_for(watchdog: Watchdog) -> TestClient:
    reporter = StatusReporter(watchdog.probe, watchdog.tracker, watchdog.escalator)
    return TestClient(create_app(reporter))


class TestMonitorStatusEndpoint:
    """Tests for GET /monitor/status."""

    def test_returns_status_json(self) -> None:
        response = client_for(build_watchdog()).get("/monitor/status")

        assert response.status_code == 200
        data = response.json()
        assert data["app_name"] == "internal-cms"
        assert data["health_state"] == "healthy"
        assert data["health"]["process_status"] == "online"

    def test_reports_missing_app_without_failing(self) -> None:
        response = client_for(build_watchdog(processes=[])).get("/monitor/status")

        assert response.status_code == 200
        assert response.json()["error"] == "App internal-cms not found in PM2"


class TestLivenessEndpoint:
    """Tests for GET /health/live."""

    def test_liveness(self) -> None:
        watchdog = build_watchdog()
        watchdog.tracker.set_monitoring_active(True)

        response = client_for(watchdog).get("/health/live")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["monitoring"] is True

    def test_liveness_does_not_probe(self) -> None:
        watchdog = build_watchdog()
        client_for(watchdog).get("/health/live")
        assert watchdog.supervisor.calls == []
