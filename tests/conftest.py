"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from servicectl.core.installer import AccountRegistrationStep, ServiceRegistrationStep
from servicectl.core.log_setup import LOGGER_NAME
from servicectl.instances.base import ServiceInstance
from servicectl.managers.base import ServiceManager, ServiceManagerError, ServiceNotFoundError
from servicectl.models.configuration import Configuration
from servicectl.models.recovery import RecoveryAction, ServiceRecoveryOptions
from servicectl.models.service import ServiceInfo


class FakeServiceManager(ServiceManager):
    """In-memory service manager that records every call.

    ``fail_on`` maps a call name (e.g. 'register:worker') to the exception
    raised when that call is made.
    """

    def __init__(self, dry_run: bool = False) -> None:
        super().__init__(dry_run=dry_run)
        self.calls: list[str] = []
        self.services: dict[str, ServiceRegistrationStep] = {}
        self.accounts: dict[str, AccountRegistrationStep] = {}
        self.recovery: dict[str, ServiceRecoveryOptions] = {}
        self.fail_on: dict[str, Exception] = {}
        self.available = True

    def _record(self, call: str) -> None:
        self.calls.append(call)
        if call in self.fail_on:
            raise self.fail_on[call]

    def is_available(self) -> bool:
        return self.available

    def register_service(self, step: ServiceRegistrationStep) -> None:
        self._record(f"register:{step.service_name}")
        self.services[step.service_name] = step

    def unregister_service(self, service_name: str) -> None:
        self._record(f"unregister:{service_name}")
        if service_name not in self.services:
            raise ServiceNotFoundError(service_name)
        del self.services[service_name]
        self.accounts.pop(service_name, None)
        self.recovery.pop(service_name, None)

    def configure_account(self, step: AccountRegistrationStep) -> None:
        self._record(f"account:{','.join(step.service_names)}")
        for service_name in step.service_names:
            self.accounts[service_name] = step

    def set_recovery_options(self, service_name: str, options: ServiceRecoveryOptions) -> None:
        self._record(f"recovery:{service_name}")
        self.recovery[service_name] = options


class FakeServiceInstance(ServiceInstance):
    """Service instance that exits after a fixed number of polls."""

    def __init__(
        self,
        name: str = "worker",
        exit_after: int | None = None,
        exit_code: int = 0,
        recovery_options: ServiceRecoveryOptions | None = None,
    ) -> None:
        self._name = name
        self._exit_after = exit_after
        self._exit_code = exit_code
        self._recovery_options = recovery_options
        self.polls = 0
        self.started = False
        self.stopped = False

    @property
    def service_name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "Test worker"

    @property
    def services_depended_on(self) -> tuple[str, ...]:
        return ("Tcpip",)

    @property
    def recovery_options(self) -> ServiceRecoveryOptions | None:
        return self._recovery_options

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def poll(self) -> int | None:
        self.polls += 1
        if self._exit_after is not None and self.polls >= self._exit_after:
            return self._exit_code
        return None


@pytest.fixture(autouse=True)
def reset_app_logger() -> Iterator[None]:
    """Remove handlers attached to the servicectl logger by a test."""
    yield
    app_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture
def manager() -> FakeServiceManager:
    """Fresh in-memory service manager."""
    return FakeServiceManager()


@pytest.fixture
def dry_run_manager() -> FakeServiceManager:
    """In-memory service manager in dry-run mode."""
    return FakeServiceManager(dry_run=True)


@pytest.fixture
def configuration() -> Configuration:
    """Empty configuration."""
    return Configuration()


@pytest.fixture
def restart_options() -> ServiceRecoveryOptions:
    """Recovery options restarting the service twice, then rebooting."""
    return ServiceRecoveryOptions(
        first_failure_action=RecoveryAction.RESTART_THE_SERVICE,
        second_failure_action=RecoveryAction.RESTART_THE_SERVICE,
        subsequent_failure_actions=RecoveryAction.RESTART_THE_COMPUTER,
        days_to_reset_fail_count=1,
        minutes_to_restart_service=2,
        reboot_message="Rebooting after repeated failures",
    )


@pytest.fixture
def services() -> list[ServiceInfo]:
    """Three services to install as one group."""
    return [
        ServiceInfo("alpha", display_name="Alpha"),
        ServiceInfo("beta", services_depended_on=("alpha",)),
        ServiceInfo("gamma"),
    ]


@pytest.fixture
def sc_failure() -> ServiceManagerError:
    """Generic service manager failure."""
    return ServiceManagerError("sc create 'beta' failed: Access is denied.")


@pytest.fixture
def instance_factory() -> type[FakeServiceInstance]:
    """Class used to build fake service instances with custom behavior."""
    return FakeServiceInstance
