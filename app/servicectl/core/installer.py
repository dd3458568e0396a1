"""Transactional service installation.

Builds an ordered list of install steps from a Configuration and the
services to register, then commits them against a service manager. If a
step fails, the steps already committed are rolled back in reverse order
before a single InstallStepError is raised, so the service manager is
left as it was found.

Step order for install:
1. One service registration step per service, in the given order
2. One account step shared by every service of the group
3. One recovery step per service that declares recovery options

Uninstall removes the services in reverse order. A service that is
already gone is not an error.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from servicectl.managers.base import ServiceManager, ServiceNotFoundError
from servicectl.models.configuration import AccountInfo, AccountType, Configuration
from servicectl.models.recovery import ServiceRecoveryOptions
from servicectl.models.service import ServiceInfo, StartMode

# Arguments appended to the executable so the service manager starts it in run mode
DEFAULT_LAUNCH_ARGUMENTS: tuple[str, ...] = ("--action", "run")


class InstallError(Exception):
    """Base exception for install and uninstall failures."""


class InstallStepError(InstallError):
    """Raised when a step fails; earlier steps have been rolled back."""

    def __init__(self, step_name: str, cause: BaseException) -> None:
        self.step_name = step_name
        self.cause = cause
        super().__init__(f"Step '{step_name}' failed: {cause}")


class InstallStep(ABC):
    """A single reversible unit of an install transaction."""

    __slots__ = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a human-readable label naming the step."""

    @abstractmethod
    def commit(self, manager: ServiceManager) -> bool:
        """Apply the step.

        Returns:
            True if the service manager was changed, False if there was
            nothing to do.

        Raises:
            ServiceManagerError: If the service manager rejects the step.
        """

    def rollback(self, manager: ServiceManager) -> None:  # noqa: B027
        """Undo a committed step. Steps with nothing to undo keep the default."""


@dataclass(frozen=True, slots=True)
class ServiceRegistrationStep(InstallStep):
    """Registers one service.

    Attributes:
        service_name: Name the service is registered under.
        display_name: Human-friendly name.
        description: Longer description.
        start_mode: When the service starts.
        services_depended_on: Services that must start first, in order.
        binary_path: Command line the service manager launches.
        allow_interact_with_desktop: Whether the service may use the desktop.
    """

    service_name: str
    display_name: str
    description: str
    start_mode: StartMode
    services_depended_on: tuple[str, ...]
    binary_path: str
    allow_interact_with_desktop: bool = False

    @property
    def name(self) -> str:
        return f"register service '{self.service_name}'"

    def commit(self, manager: ServiceManager) -> bool:
        manager.register_service(self)
        return True

    def rollback(self, manager: ServiceManager) -> None:
        try:
            manager.unregister_service(self.service_name)
        except ServiceNotFoundError:
            pass  # already gone


@dataclass(frozen=True, slots=True)
class AccountRegistrationStep(InstallStep):
    """Sets the run-as account shared by every service in the group.

    Attributes:
        account_type: Identity the services run as.
        service_names: Services the account applies to.
        username: Account name, only for USER accounts with credentials.
        password: Account password, only alongside ``username``.
    """

    account_type: AccountType
    service_names: tuple[str, ...]
    username: str | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        label = self.username if self.username else self.account_type.value
        return f"configure account '{label}'"

    def commit(self, manager: ServiceManager) -> bool:
        manager.configure_account(self)
        return True

    # Rollback is a no-op: the registration steps remove the services themselves.


@dataclass(frozen=True, slots=True)
class RecoveryOptionsStep(InstallStep):
    """Applies failure-recovery settings to one service."""

    service_name: str
    options: ServiceRecoveryOptions

    @property
    def name(self) -> str:
        return f"set recovery options for '{self.service_name}'"

    def commit(self, manager: ServiceManager) -> bool:
        manager.set_recovery_options(self.service_name, self.options)
        return True


@dataclass(frozen=True, slots=True)
class ServiceRemovalStep(InstallStep):
    """Removes one service; rollback registers it again.

    The account a service ran under is not known at uninstall time, so
    rollback registers it without configuring an account.

    Attributes:
        registration: How the service was registered, used for rollback.
        recovery: Recovery options to restore on rollback.
    """

    registration: ServiceRegistrationStep
    recovery: ServiceRecoveryOptions | None = None

    @property
    def name(self) -> str:
        return f"remove service '{self.registration.service_name}'"

    def commit(self, manager: ServiceManager) -> bool:
        try:
            manager.unregister_service(self.registration.service_name)
        except ServiceNotFoundError:
            return False
        return True

    def rollback(self, manager: ServiceManager) -> None:
        service_name = self.registration.service_name
        manager.register_service(self.registration)
        if self.recovery is not None:
            manager.set_recovery_options(service_name, self.recovery)


@dataclass(frozen=True, slots=True)
class InstallContext:
    """Global settings of one install or uninstall run.

    Attributes:
        assembly_path: Executable the service manager launches.
        log_file: File progress is written to, if any.
        log_to_console: Whether progress is logged to the console.
        show_call_stack: Whether failures are logged with a traceback.
        launch_arguments: Arguments appended to the executable.
    """

    assembly_path: str
    log_file: str | None = None
    log_to_console: bool | None = None
    show_call_stack: bool | None = None
    launch_arguments: tuple[str, ...] = DEFAULT_LAUNCH_ARGUMENTS

    @property
    def binary_path(self) -> str:
        """Return the quoted command line registered with the service manager."""
        return subprocess.list2cmdline([self.assembly_path, *self.launch_arguments])

    def to_arguments(self) -> list[str]:
        """Render the context as installer-style ``/key=value`` arguments."""
        arguments = [f"/assemblypath={self.assembly_path}"]
        if self.log_file:
            arguments.append(f"/logfile={self.log_file}")
        if self.log_to_console is not None:
            arguments.append(f"/logtoconsole={str(self.log_to_console).lower()}")
        if self.show_call_stack is not None:
            arguments.append("/showcallstack")
        return arguments


def create_service_step(
    service: ServiceInfo,
    binary_path: str,
    allow_interact_with_desktop: bool = False,
) -> ServiceRegistrationStep:
    """Create the registration step for one service.

    Args:
        service: Service to register.
        binary_path: Command line the service manager launches.
        allow_interact_with_desktop: Whether the service may use the desktop.

    Returns:
        ServiceRegistrationStep with dependencies in their original order.
    """
    return ServiceRegistrationStep(
        service_name=service.service_name,
        display_name=service.display_name or service.service_name,
        description=service.description,
        start_mode=service.start_mode,
        services_depended_on=tuple(service.services_depended_on),
        binary_path=binary_path,
        allow_interact_with_desktop=allow_interact_with_desktop,
    )


def create_account_step(
    account_info: AccountInfo,
    service_names: Sequence[str],
) -> AccountRegistrationStep:
    """Create the account step shared by a group of services.

    Credentials are attached only for USER accounts with both a username
    and a password; system accounts never carry them.

    Args:
        account_info: Account the services run under.
        service_names: Services the account applies to.

    Returns:
        AccountRegistrationStep for the group.
    """
    if account_info.has_credentials:
        return AccountRegistrationStep(
            account_type=account_info.account_type,
            service_names=tuple(service_names),
            username=account_info.username,
            password=account_info.password,
        )
    return AccountRegistrationStep(
        account_type=account_info.account_type,
        service_names=tuple(service_names),
    )


class InstallTransaction:
    """Ordered install steps committed as one unit.

    Attributes:
        service_steps: One registration step per service.
        account_step: Account step shared by the group.
        recovery_steps: Recovery steps for services that declare options.
        context: Global settings of the run.
    """

    def __init__(
        self,
        service_steps: Sequence[ServiceRegistrationStep],
        account_step: AccountRegistrationStep,
        recovery_steps: Sequence[RecoveryOptionsStep],
        context: InstallContext,
        logger: logging.Logger | None = None,
    ) -> None:
        self.service_steps = tuple(service_steps)
        self.account_step = account_step
        self.recovery_steps = tuple(recovery_steps)
        self.context = context
        self._logger = logger or logging.getLogger(__name__)

    @property
    def steps(self) -> tuple[InstallStep, ...]:
        """Return the install steps in commit order."""
        return (*self.service_steps, self.account_step, *self.recovery_steps)

    def removal_steps(self) -> tuple[ServiceRemovalStep, ...]:
        """Return the uninstall steps, last registered service first."""
        recovery = {step.service_name: step.options for step in self.recovery_steps}
        return tuple(
            ServiceRemovalStep(
                registration=step,
                recovery=recovery.get(step.service_name),
            )
            for step in reversed(self.service_steps)
        )

    def install(self, manager: ServiceManager) -> None:
        """Commit every install step or none of them.

        Raises:
            InstallStepError: If a step fails. Committed steps have been
                rolled back.
        """
        self._logger.debug("Install context: %s", " ".join(self.context.to_arguments()))
        self._run(self.steps, manager)

    def uninstall(self, manager: ServiceManager) -> None:
        """Remove every service or none of them.

        Services that are not registered are skipped.

        Raises:
            InstallStepError: If a removal fails. Removed services have been
                registered again.
        """
        self._logger.debug("Uninstall context: %s", " ".join(self.context.to_arguments()))
        self._run(self.removal_steps(), manager)

    def _run(self, steps: Sequence[InstallStep], manager: ServiceManager) -> None:
        committed: list[InstallStep] = []
        for step in steps:
            self._logger.info("Committing step: %s", step.name)
            try:
                changed = step.commit(manager)
            except Exception as e:
                self._logger.error("Step '%s' failed: %s", step.name, e)
                self._rollback(committed, manager)
                raise InstallStepError(step.name, e) from e

            if changed:
                committed.append(step)
            else:
                self._logger.info("Step '%s' made no changes", step.name)

    def _rollback(self, committed: list[InstallStep], manager: ServiceManager) -> None:
        for step in reversed(committed):
            self._logger.warning("Rolling back step: %s", step.name)
            try:
                step.rollback(manager)
            except Exception as e:  # noqa: BLE001
                # Keep rolling back; the original failure is what gets raised
                self._logger.error("Rollback of step '%s' failed: %s", step.name, e)


class InstallOrchestrator:
    """Builds and runs install transactions against a service manager.

    Example:
        >>> orchestrator = InstallOrchestrator(ScServiceManager())
        >>> orchestrator.install(configuration, [ServiceInfo("worker")], "C:/apps/worker.exe")
    """

    def __init__(self, manager: ServiceManager, logger: logging.Logger | None = None) -> None:
        """Initialize the orchestrator.

        Args:
            manager: Service manager the steps are committed against.
            logger: Logger for progress messages. Defaults to the module logger.
        """
        self._manager = manager
        self._logger = logger or logging.getLogger(__name__)

    @property
    def manager(self) -> ServiceManager:
        """Return the service manager steps are committed against."""
        return self._manager

    def build(
        self,
        configuration: Configuration,
        services: Sequence[ServiceInfo],
        assembly_path: str,
    ) -> InstallTransaction:
        """Build the transaction for a group of services.

        Args:
            configuration: Validated configuration of the run.
            services: Services to register, in order.
            assembly_path: Executable the service manager launches.

        Returns:
            InstallTransaction ready to install or uninstall.

        Raises:
            ValueError: If no services or no assembly path are given.
            RecoveryInvariantViolation: If a service's recovery options are invalid.
        """
        if not assembly_path:
            msg = "Assembly path cannot be empty"
            raise ValueError(msg)
        if not services:
            msg = "At least one service is required"
            raise ValueError(msg)

        self._logger.debug("Creating install transaction for %d service(s)", len(services))
        context = InstallContext(
            assembly_path=assembly_path,
            log_file=configuration.log_file,
            log_to_console=configuration.log_to_console,
            show_call_stack=configuration.show_call_stack,
        )

        service_steps = [
            create_service_step(
                service,
                context.binary_path,
                allow_interact_with_desktop=configuration.allow_interact_with_desktop,
            )
            for service in services
        ]
        account_step = create_account_step(
            configuration.account_info,
            [service.service_name for service in services],
        )

        recovery_steps: list[RecoveryOptionsStep] = []
        for service in services:
            if service.recovery_options is not None:
                service.recovery_options.validate()
                recovery_steps.append(
                    RecoveryOptionsStep(service.service_name, service.recovery_options)
                )

        return InstallTransaction(
            service_steps,
            account_step,
            recovery_steps,
            context,
            logger=self._logger,
        )

    def install(
        self,
        configuration: Configuration,
        services: Sequence[ServiceInfo],
        assembly_path: str,
    ) -> InstallTransaction:
        """Build and commit an install transaction.

        Returns:
            The committed transaction.

        Raises:
            InstallStepError: If a step fails; nothing is left installed.
        """
        transaction = self.build(configuration, services, assembly_path)
        transaction.install(self._manager)
        return transaction

    def uninstall(
        self,
        configuration: Configuration,
        services: Sequence[ServiceInfo],
        assembly_path: str,
    ) -> InstallTransaction:
        """Build and commit an uninstall transaction.

        Returns:
            The committed transaction.

        Raises:
            InstallStepError: If a removal fails; removed services are restored.
        """
        transaction = self.build(configuration, services, assembly_path)
        transaction.uninstall(self._manager)
        return transaction
