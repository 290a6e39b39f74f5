"""Shared pytest fixtures for the watchdog tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

import pytest

from app_watchdog.config import MonitorConfig
from tests.helpers import Watchdog, build_watchdog, make_config


@pytest.fixture
def config() -> MonitorConfig:
    return make_config()


@pytest.fixture
def watchdog() -> Watchdog:
    """Healthy app, running dependency, healthy HTTP endpoint."""
    return build_watchdog()


@pytest.fixture
def clean_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Iterator[None]:
    """Remove WATCHDOG_* variables and run from an empty directory (no .env).

    Variables loaded from .env files during the test are removed afterwards.
    """
    for key in list(os.environ):
        if key.startswith("WATCHDOG_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    yield
    for key in list(os.environ):
        if key.startswith("WATCHDOG_"):
            del os.environ[key]


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Restore root and package logger state after tests that call setup_logging."""
    root = logging.getLogger()
    package = logging.getLogger("app_watchdog")
    saved = (root.level, root.handlers[:], package.level, package.handlers[:])
    yield
    for logger, level, handlers in ((root, saved[0], saved[1]), (package, saved[2], saved[3])):
        for handler in logger.handlers[:]:
            if handler not in handlers:
                logger.removeHandler(handler)
                handler.close()
        for handler in handlers:
            if handler not in logger.handlers:
                logger.addHandler(handler)
        logger.setLevel(level)
