"""Exception hierarchy for the watchdog.

Error categories:
- Configuration errors (ProcessNotFoundError): the managed application is not
  registered with the supervisor. Retrying or restarting cannot fix this, so
  it is raised to the caller and never remediated.
- Command errors (CommandError): an external command failed, timed out or
  could not be executed. These are transient from the monitor's point of view.
- Supervisor errors (SupervisorError): the supervisor answered with something
  the watchdog could not use (command failure, unparseable process table).
"""

from __future__ import annotations

from collections.abc import Sequence


class WatchdogError(Exception):
    """Base class for all watchdog errors."""


class CommandError(WatchdogError):
    """Raised when an external command fails.

    Attributes:
        command: The argument vector that was executed.
        returncode: Process exit code, or None if the command never completed.
        stderr: Captured standard error output, if any.
    """

    def __init__(
        self,
        command: Sequence[str],
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command '{' '.join(self.command)}' failed: {message}")


class SupervisorError(WatchdogError):
    """Raised when the process supervisor cannot be queried."""


class ProcessNotFoundError(SupervisorError):
    """Raised when the managed application is absent from the supervisor.

    This is a misconfiguration rather than a transient failure.
    """

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name
        super().__init__(f"App {app_name} not found in PM2")


__all__ = [
    "CommandError",
    "ProcessNotFoundError",
    "SupervisorError",
    "WatchdogError",
]
