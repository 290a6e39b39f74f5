"""Dependency Injection container for the watchdog.

Every component is a Singleton built from the shared MonitorConfig, so the
monitor, the escalator and the status reporter see the same tracker and the
same supervisor client.

Usage:
    # Production setup
    container = create_container(config)
    monitor = container.monitor()

    # Test setup with fakes
    container = create_container(config)
    container.supervisor.override(providers.Object(FakeSupervisor()))
    monitor = container.monitor()
"""

from __future__ import annotations

from dependency_injector import containers, providers

from app_watchdog.commands import CommandRunner
from app_watchdog.config import MonitorConfig
from app_watchdog.dependency import DependencyChecker
from app_watchdog.monitor import Monitor
from app_watchdog.probe import HealthProbe
from app_watchdog.recovery import RecoveryEscalator
from app_watchdog.reporter import StatusReporter
from app_watchdog.supervisor import Pm2Supervisor
from app_watchdog.tracker import FailureTracker


def create_command_runner(config: MonitorConfig) -> CommandRunner:
    return CommandRunner(timeout=config.command_timeout)


def create_supervisor(runner: CommandRunner, config: MonitorConfig) -> Pm2Supervisor:
    return Pm2Supervisor(
        runner,
        pm2_path=config.pm2_path,
        ecosystem_file=config.ecosystem_file,
    )


def create_dependency_checker(runner: CommandRunner, config: MonitorConfig) -> DependencyChecker:
    return DependencyChecker(runner, name=config.dependency_name)


def create_probe(
    config: MonitorConfig,
    supervisor: Pm2Supervisor,
    dependency_checker: DependencyChecker,
) -> HealthProbe:
    return HealthProbe(config, supervisor, dependency_checker)


def create_escalator(
    config: MonitorConfig,
    supervisor: Pm2Supervisor,
    dependency_checker: DependencyChecker,
    tracker: FailureTracker,
) -> RecoveryEscalator:
    return RecoveryEscalator(config, supervisor, dependency_checker, tracker)


class WatchdogContainer(containers.DeclarativeContainer):
    """Root container for the watchdog.

    WatchdogContainer
    ├── config (MonitorConfig)
    ├── command_runner
    ├── supervisor
    ├── dependency_checker
    ├── tracker
    ├── probe
    ├── escalator
    ├── monitor
    └── reporter
    """

    config: providers.Dependency[MonitorConfig] = providers.Dependency(instance_of=MonitorConfig)

    command_runner = providers.Singleton(create_command_runner, config)
    supervisor = providers.Singleton(create_supervisor, command_runner, config)
    dependency_checker = providers.Singleton(create_dependency_checker, command_runner, config)
    tracker = providers.Singleton(FailureTracker.from_config, config)

    probe = providers.Singleton(create_probe, config, supervisor, dependency_checker)
    escalator = providers.Singleton(
        create_escalator,
        config,
        supervisor,
        dependency_checker,
        tracker,
    )

    monitor = providers.Singleton(Monitor, config, probe, tracker, escalator)
    reporter = providers.Singleton(StatusReporter, probe, tracker, escalator)


def create_container(config: MonitorConfig | None = None) -> WatchdogContainer:
    """Create and configure the DI container.

    Args:
        config: Optional configuration. If not provided, loads from environment.

    Returns:
        WatchdogContainer ready for use.
    """
    from app_watchdog.config import load_config

    if config is None:
        config = load_config()

    container = WatchdogContainer()
    container.config.override(providers.Object(config))
    return container


__all__ = [
    "WatchdogContainer",
    "create_command_runner",
    "create_container",
    "create_dependency_checker",
    "create_escalator",
    "create_probe",
    "create_supervisor",
]
