"""Dependency process check.

The managed application cannot work without its database, so every health
check and every recovery tier first verifies that the dependency process is
present in the OS process table. The lookup is best-effort: if the listing
command itself fails, the dependency is reported as not running together
with the reason, and no exception escapes.
"""

from __future__ import annotations

import sys
from pathlib import PurePath

from app_watchdog.commands import CommandExecutor
from app_watchdog.exceptions import CommandError
from app_watchdog.logging import get_logger
from app_watchdog.types import DependencyStatus

logger = get_logger(__name__)


class DependencyChecker:
    """Looks up a dependency process by image name.

    On Windows the process table is read with ``tasklist`` filtered by image
    name; elsewhere with ``ps -A -o comm=``.
    """

    def __init__(
        self,
        runner: CommandExecutor,
        name: str = "mongod",
        platform: str = sys.platform,
    ) -> None:
        """Initialize the checker.

        Args:
            runner: Command executor used to list processes.
            name: Process image name, without the ``.exe`` suffix.
            platform: Platform identifier, as in ``sys.platform``.
        """
        self._runner = runner
        self.name = name
        self._windows = platform.startswith("win")

    @property
    def image_name(self) -> str:
        """Image name as it appears in the process table."""
        if self._windows and not self.name.lower().endswith(".exe"):
            return f"{self.name}.exe"
        return self.name

    def check(self) -> DependencyStatus:
        """Report whether the dependency process is running. Never raises."""
        try:
            running = self._is_running()
        except CommandError as e:
            logger.debug("Dependency listing failed: %s", e)
            return DependencyStatus(
                name=self.name,
                running=False,
                details=f"Failed to check {self.name}: {e}",
            )

        if running:
            return DependencyStatus(name=self.name, running=True, details=f"{self.name} process found")
        return DependencyStatus(name=self.name, running=False, details=f"{self.name} process not found")

    def _is_running(self) -> bool:
        image = self.image_name
        if self._windows:
            output = self._runner.run(["tasklist", "/FI", f"IMAGENAME eq {image}"])
            return image.lower() in output.lower()

        output = self._runner.run(["ps", "-A", "-o", "comm="])
        for line in output.splitlines():
            command = line.strip()
            if command and PurePath(command).name == image:
                return True
        return False


__all__ = ["DependencyChecker"]
