"""PM2 process supervisor client.

Wraps the PM2 CLI commands the watchdog needs:

- ``pm2 jlist``: read the process table (JSON)
- ``pm2 restart <app>``: graceful restart
- ``pm2 stop <app>`` / ``pm2 delete <app>``: tear down a registration
- ``pm2 start <ecosystem file>``: recreate from declared startup configuration
- ``pm2 save``: persist the process table
"""

from __future__ import annotations

import json
from pathlib import Path

from app_watchdog.commands import CommandExecutor
from app_watchdog.exceptions import CommandError, ProcessNotFoundError, SupervisorError
from app_watchdog.logging import get_logger
from app_watchdog.types import ProcessInfo

logger = get_logger(__name__)


class Pm2Supervisor:
    """Client for the PM2 process supervisor."""

    def __init__(
        self,
        runner: CommandExecutor,
        pm2_path: str = "pm2",
        ecosystem_file: Path = Path("ecosystem.config.js"),
    ) -> None:
        self._runner = runner
        self._pm2 = pm2_path
        self._ecosystem_file = ecosystem_file

    def list_processes(self) -> list[ProcessInfo]:
        """Return every process in the supervisor's process table.

        Raises:
            SupervisorError: If ``pm2 jlist`` fails or its output is not a JSON list.
        """
        try:
            output = self._runner.run([self._pm2, "jlist"])
        except CommandError as e:
            raise SupervisorError(f"PM2 status check failed: {e}") from e

        try:
            entries = json.loads(output)
        except json.JSONDecodeError as e:
            raise SupervisorError(f"PM2 status check failed: unparseable jlist output ({e})") from e

        if not isinstance(entries, list):
            raise SupervisorError("PM2 status check failed: jlist output is not a list")

        processes = [ProcessInfo.from_pm2(entry) for entry in entries if isinstance(entry, dict)]
        logger.debug("PM2 reports %d process(es)", len(processes))
        return processes

    def get_process(self, name: str) -> ProcessInfo:
        """Look up one process by name.

        Raises:
            ProcessNotFoundError: If no process with that name is registered.
            SupervisorError: If the process table cannot be read.
        """
        for info in self.list_processes():
            if info.name == name:
                return info
        raise ProcessNotFoundError(name)

    def restart(self, name: str) -> None:
        self._runner.run([self._pm2, "restart", name])

    def stop(self, name: str) -> None:
        self._runner.run([self._pm2, "stop", name])

    def delete(self, name: str) -> None:
        self._runner.run([self._pm2, "delete", name])

    def start_from_config(self) -> None:
        """Start the processes declared in the ecosystem file."""
        self._runner.run([self._pm2, "start", str(self._ecosystem_file)])

    def save(self) -> None:
        """Persist the current process table so it survives a supervisor restart."""
        self._runner.run([self._pm2, "save"])


__all__ = ["Pm2Supervisor"]
