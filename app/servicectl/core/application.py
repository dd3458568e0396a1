"""Service application entry point.

Ties the pieces of one invocation together: parse the command line into a
Configuration, seed it from the service instance, configure logging, then
dispatch to install, uninstall, supervised run, or console run.
"""

import logging
from collections.abc import Callable, Sequence
from typing import assert_never

from servicectl.cli.display import (
    create_steps_table,
    print_parse_errors,
    print_usage,
)
from servicectl.core.handlers import build_parser
from servicectl.core.installer import InstallError, InstallOrchestrator, InstallTransaction
from servicectl.core.log_setup import configure_logging
from servicectl.core.paths import default_assembly_path
from servicectl.core.runner import run_service
from servicectl.core.service_config import ServiceConfigError
from servicectl.instances.base import ServiceInstance
from servicectl.managers.base import ServiceManager
from servicectl.managers.sc import ScServiceManager
from servicectl.models.configuration import Configuration, ConfigurationAction
from servicectl.models.recovery import RecoveryInvariantViolation
from servicectl.models.service import ServiceInfo
from servicectl.utils.formatting import console, print_error, print_info, print_success

ServiceFactory = Callable[[], ServiceInstance]
Configurer = Callable[[Configuration], None]


class ServiceApplication:
    """Runs one invocation of a hosted service's command line.

    Example:
        >>> application = ServiceApplication(Worker)
        >>> exit_code = application.run(["--action", "install", "-c", "localSystem"])
    """

    def __init__(
        self,
        service_factory: ServiceFactory,
        *,
        manager: ServiceManager | None = None,
        assembly_path: str | None = None,
        configurer: Configurer | None = None,
        debug: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the application.

        Args:
            service_factory: Creates the service instance. Called once per run,
                after the arguments parsed cleanly.
            manager: Service manager for install and uninstall. Defaults to sc.exe.
            assembly_path: Executable registered with the service manager.
                Defaults to the running servicectl executable.
            configurer: Hook that adjusts the Configuration before dispatch.
            debug: Log at DEBUG level.
            logger: Logger for progress messages. Defaults to the module logger.
        """
        self._service_factory = service_factory
        self._manager = manager or ScServiceManager()
        self._assembly_path = assembly_path
        self._configurer = configurer
        self._debug = debug
        self._logger = logger or logging.getLogger(__name__)

    @property
    def manager(self) -> ServiceManager:
        """Return the service manager used for install and uninstall."""
        return self._manager

    @property
    def assembly_path(self) -> str:
        """Return the executable registered with the service manager."""
        return self._assembly_path or default_assembly_path()

    def run(self, arguments: Sequence[str]) -> int:
        """Parse ``arguments`` and perform the selected action.

        Args:
            arguments: Command-line arguments, without the program name.

        Returns:
            Process exit code: 0 on success, 1 on any reported failure, or
            the hosted program's exit code when it ends on its own.
        """
        configuration = Configuration()
        parser = build_parser(configuration, logger=self._logger)
        result = parser.parse(arguments)

        if result.show_help:
            print_usage(parser)
            return 0
        if result.has_errors:
            print_parse_errors(result)
            return 1

        try:
            instance = self._service_factory()
        except ServiceConfigError as e:
            print_error(str(e))
            return 1

        self._seed(configuration, instance)
        if self._configurer is not None:
            self._configurer(configuration)

        try:
            configure_logging(configuration, debug=self._debug)
        except OSError as e:
            print_error(f"Cannot open log file: {e}")
            return 1

        return self._dispatch(configuration, instance)

    def _seed(self, configuration: Configuration, instance: ServiceInstance) -> None:
        configuration.service_name = instance.service_name
        configuration.display_name = instance.display_name
        configuration.description = instance.description
        configuration.services_depended_on = list(instance.services_depended_on)

    def _dispatch(self, configuration: Configuration, instance: ServiceInstance) -> int:
        action = configuration.action
        if action is None:
            msg = "No action was selected"
            raise RuntimeError(msg)

        match action:
            case ConfigurationAction.INSTALL:
                return self._install(configuration, instance, uninstall=False)
            case ConfigurationAction.UNINSTALL:
                return self._install(configuration, instance, uninstall=True)
            case ConfigurationAction.RUN:
                return self._run(instance, supervised=True)
            case ConfigurationAction.CONSOLE:
                return self._run(instance, supervised=False)
            case _:
                assert_never(action)

    def _run(self, instance: ServiceInstance, *, supervised: bool) -> int:
        try:
            return run_service(instance, supervised=supervised)
        except RuntimeError as e:
            self._logger.error("Failed to run %s: %s", instance.service_name, e)
            print_error(str(e))
            return 1

    def _install(
        self,
        configuration: Configuration,
        instance: ServiceInstance,
        *,
        uninstall: bool,
    ) -> int:
        verb = "uninstall" if uninstall else "install"
        if not self._manager.is_available():
            print_error(f"No service manager available to {verb} '{configuration.service_name}'")
            return 1

        orchestrator = InstallOrchestrator(self._manager, logger=self._logger)
        try:
            service = ServiceInfo(
                service_name=configuration.service_name,
                display_name=configuration.display_name,
                description=configuration.description,
                start_mode=instance.start_mode,
                services_depended_on=tuple(configuration.services_depended_on),
                recovery_options=instance.recovery_options,
            )
            transaction = orchestrator.build(configuration, [service], self.assembly_path)
        except (RecoveryInvariantViolation, ValueError) as e:
            print_error(str(e))
            return 1

        self._show_plan(transaction, uninstall=uninstall)
        if self._manager.dry_run:
            print_info("Dry run: the service manager will not be changed")

        try:
            if uninstall:
                transaction.uninstall(self._manager)
            else:
                transaction.install(self._manager)
        except InstallError as e:
            self._logger.error(
                "Failed to %s %s", verb, configuration.service_name,
                exc_info=configuration.show_call_stack is not False,
            )
            print_error(str(e))
            return 1

        suffix = " (dry-run)" if self._manager.dry_run else ""
        print_success(f"Service '{configuration.service_name}' {verb}ed{suffix}")
        return 0

    def _show_plan(self, transaction: InstallTransaction, *, uninstall: bool) -> None:
        if uninstall:
            table = create_steps_table(transaction.removal_steps(), title="Uninstall Steps")
        else:
            table = create_steps_table(transaction.steps, title="Install Steps")
        console.print(table)
