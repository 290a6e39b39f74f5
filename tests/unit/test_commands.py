"""Tests for external command execution."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from app_watchdog.commands import DEFAULT_COMMAND_TIMEOUT, CommandRunner
from app_watchdog.exceptions import CommandError


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestCommandRunner:
    """Tests for CommandRunner.run()."""

    def test_default_timeout(self) -> None:
        assert CommandRunner().timeout == DEFAULT_COMMAND_TIMEOUT == 30.0

    def test_returns_stdout(self) -> None:
        with patch("app_watchdog.commands.subprocess.run", return_value=completed(stdout="[]")) as run:
            output = CommandRunner(timeout=12).run(["pm2", "jlist"])

        assert output == "[]"
        args, kwargs = run.call_args
        assert args[0] == ["pm2", "jlist"]
        assert kwargs["timeout"] == 12
        assert kwargs["capture_output"] is True
        assert kwargs["check"] is False

    def test_non_zero_exit_raises(self) -> None:
        with patch(
            "app_watchdog.commands.subprocess.run",
            return_value=completed(returncode=1, stderr="[PM2][ERROR] Process not found\n"),
        ):
            with pytest.raises(CommandError) as exc_info:
                CommandRunner().run(["pm2", "restart", "internal-cms"])

        assert exc_info.value.returncode == 1
        assert exc_info.value.stderr == "[PM2][ERROR] Process not found"
        assert "pm2 restart internal-cms" in str(exc_info.value)

    def test_timeout_raises(self) -> None:
        with patch(
            "app_watchdog.commands.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd=["pm2", "jlist"], timeout=30),
        ):
            with pytest.raises(CommandError, match="timed out"):
                CommandRunner().run(["pm2", "jlist"])

    def test_missing_executable_raises(self) -> None:
        with patch("app_watchdog.commands.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(CommandError, match="executable not found: pm2"):
                CommandRunner().run(["pm2", "jlist"])

    def test_os_error_raises(self) -> None:
        with patch("app_watchdog.commands.subprocess.run", side_effect=PermissionError("denied")):
            with pytest.raises(CommandError, match="denied"):
                CommandRunner().run(["pm2", "jlist"])

    def test_none_stdout_becomes_empty_string(self) -> None:
        result = MagicMock(returncode=0, stdout=None, stderr=None)
        with patch("app_watchdog.commands.subprocess.run", return_value=result):
            assert CommandRunner().run(["true"]) == ""
