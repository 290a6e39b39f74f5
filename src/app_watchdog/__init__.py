"""App Watchdog - health monitoring and recovery for a PM2-managed application."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("app-watchdog")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from app_watchdog.app import main
from app_watchdog.monitor import Monitor

__all__ = [
    "__version__",
    "Monitor",
    "main",
]
