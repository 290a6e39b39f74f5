"""External command execution.

All interaction with the process supervisor and the OS process table goes
through :class:`CommandRunner`, which applies the command timeout and turns
every way a command can go wrong into a :class:`CommandError`.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from app_watchdog.exceptions import CommandError
from app_watchdog.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COMMAND_TIMEOUT = 30.0


class CommandExecutor(Protocol):
    """Anything that can run an argument vector and return its stdout."""

    def run(self, args: Sequence[str]) -> str: ...


class CommandRunner:
    """Runs external commands with a fixed timeout.

    Commands are executed without a shell; arguments are passed as a list.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        cwd: Path | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            timeout: Seconds before a command is killed.
            cwd: Working directory for commands, defaults to the current one.
        """
        self.timeout = timeout
        self.cwd = cwd

    def run(self, args: Sequence[str]) -> str:
        """Run a command and return its standard output.

        Args:
            args: Program and arguments.

        Returns:
            Captured stdout as text.

        Raises:
            CommandError: If the command cannot be started, times out, or
                exits with a non-zero status.
        """
        cmd = list(args)
        logger.debug("Running command: %s", " ".join(cmd))
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=str(self.cwd) if self.cwd else None,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise CommandError(cmd, f"timed out after {self.timeout}s") from None
        except FileNotFoundError:
            raise CommandError(cmd, f"executable not found: {cmd[0]}") from None
        except OSError as e:
            raise CommandError(cmd, str(e)) from e

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            raise CommandError(
                cmd,
                stderr or f"exit status {completed.returncode}",
                returncode=completed.returncode,
                stderr=stderr,
            )
        return completed.stdout or ""


__all__ = ["CommandExecutor", "CommandRunner", "DEFAULT_COMMAND_TIMEOUT"]
