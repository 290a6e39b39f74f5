"""Bootstrap and dependency wiring.

This module is the composition root: it loads configuration, applies CLI
overrides, sets up logging and builds the DI container before the monitor
starts.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any

from app_watchdog.config import MonitorConfig, load_config
from app_watchdog.container import WatchdogContainer, create_container
from app_watchdog.logging import get_logger, setup_logging

logger = get_logger(__name__)


class BootstrapContext:
    """Holds the configuration and the wired container."""

    def __init__(self, config: MonitorConfig, container: WatchdogContainer) -> None:
        self.config = config
        self.container = container


def apply_cli_overrides(config: MonitorConfig, parsed: argparse.Namespace) -> MonitorConfig:
    """Apply CLI argument overrides to the configuration.

    Args:
        config: Base configuration loaded from environment.
        parsed: Parsed command-line arguments.

    Returns:
        New MonitorConfig instance with CLI overrides applied.
    """
    overrides: dict[str, Any] = {}

    if parsed.app_name:
        overrides["app_name"] = parsed.app_name
    if parsed.health_url:
        overrides["health_check_url"] = parsed.health_url
    if parsed.interval:
        overrides["check_interval"] = parsed.interval
    if parsed.max_failures:
        overrides["max_failures"] = parsed.max_failures
    if parsed.log_level:
        overrides["log_level"] = parsed.log_level
    if parsed.no_status_server:
        overrides["status_enabled"] = False

    if overrides:
        return replace(config, **overrides)
    return config


def bootstrap(parsed: argparse.Namespace) -> BootstrapContext | None:
    """Bootstrap the application.

    Returns:
        BootstrapContext, or None if the monitor log file cannot be opened.
    """
    config = load_config(parsed.env_file)
    config = apply_cli_overrides(config, parsed)

    try:
        setup_logging(config.log_level, json_format=config.log_json, log_file=config.log_file)
    except OSError as e:
        setup_logging(config.log_level, json_format=config.log_json)
        logger.error("Cannot open monitor log file %s: %s", config.log_file, e)
        return None

    logger.info(
        "Watching %s (health URL %s, interval %ss, max failures %d)",
        config.app_name,
        config.health_check_url,
        config.check_interval,
        config.max_failures,
    )

    return BootstrapContext(config=config, container=create_container(config))


__all__ = [
    "BootstrapContext",
    "apply_cli_overrides",
    "bootstrap",
]
