"""Windows service manager implementation.

Registers, configures and removes services with ``sc.exe``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from servicectl.managers.base import ServiceManager, ServiceManagerError, ServiceNotFoundError
from servicectl.models.configuration import AccountType
from servicectl.models.recovery import RecoveryAction, ServiceRecoveryOptions
from servicectl.models.service import StartMode
from servicectl.utils.shell import command_exists, run_command

if TYPE_CHECKING:
    from servicectl.core.installer import AccountRegistrationStep, ServiceRegistrationStep

logger = logging.getLogger(__name__)

# sc.exe spelling of each start mode
START_MODES: dict[StartMode, str] = {
    StartMode.AUTOMATIC: "auto",
    StartMode.MANUAL: "demand",
    StartMode.DISABLED: "disabled",
}

# Run-as identity of each built-in account
SERVICE_ACCOUNTS: dict[AccountType, str] = {
    AccountType.LOCAL_SYSTEM: "LocalSystem",
    AccountType.LOCAL_SERVICE: r"NT AUTHORITY\LocalService",
    AccountType.NETWORK_SERVICE: r"NT AUTHORITY\NetworkService",
}

# sc.exe failure action verbs; an empty verb takes no action
FAILURE_ACTIONS: dict[RecoveryAction, str] = {
    RecoveryAction.TAKE_NO_ACTION: "",
    RecoveryAction.RESTART_THE_SERVICE: "restart",
    RecoveryAction.RESTART_THE_COMPUTER: "reboot",
    RecoveryAction.RUN_A_PROGRAM: "run",
}

_MASK = "********"


class ScServiceManager(ServiceManager):
    """Service manager backed by the Windows ``sc.exe`` tool.

    Requires an elevated prompt for actual execution. sc.exe calls block
    until the Service Control Manager answers; no timeout is applied.

    Attributes:
        dry_run: If True, log the sc.exe commands without running them.
    """

    # ERROR_SERVICE_DOES_NOT_EXIST, returned as sc.exe's exit code
    _SERVICE_DOES_NOT_EXIST: int = 1060

    def is_available(self) -> bool:
        """Check if sc.exe is available (always True in dry-run mode)."""
        return self.dry_run or command_exists("sc")

    def register_service(self, step: ServiceRegistrationStep) -> None:
        """Create the service with ``sc create`` and set its description."""
        args = [
            "sc",
            "create",
            step.service_name,
            "binPath=",
            step.binary_path,
            "start=",
            START_MODES[step.start_mode],
            "DisplayName=",
            step.display_name,
        ]
        if step.services_depended_on:
            args.extend(["depend=", "/".join(step.services_depended_on)])
        if step.allow_interact_with_desktop:
            args.extend(["type=", "own", "type=", "interact"])
        self._run_sc(args, step.service_name)

        if step.description:
            self._run_sc(["sc", "description", step.service_name, step.description], step.service_name)

    def unregister_service(self, service_name: str) -> None:
        """Delete the service with ``sc delete``."""
        self._run_sc(["sc", "delete", service_name], service_name)

    def configure_account(self, step: AccountRegistrationStep) -> None:
        """Set the run-as account of each service with ``sc config``."""
        account_name = self._account_name(step)
        for service_name in step.service_names:
            args = ["sc", "config", service_name, "obj=", account_name]
            if step.password:
                args.extend(["password=", step.password])
            self._run_sc(args, service_name, secret=step.password)

    def set_recovery_options(self, service_name: str, options: ServiceRecoveryOptions) -> None:
        """Apply failure actions with ``sc failure``."""
        args = [
            "sc",
            "failure",
            service_name,
            "reset=",
            str(options.days_to_reset_fail_count * 86400),
        ]
        if options.reboot_message:
            args.extend(["reboot=", options.reboot_message])
        if options.command_to_launch_on_failure:
            args.extend(["command=", options.command_to_launch_on_failure])
        args.extend(["actions=", format_failure_actions(options)])
        self._run_sc(args, service_name)

    def _account_name(self, step: AccountRegistrationStep) -> str:
        """Return the ``obj=`` value for the step's account."""
        if step.account_type != AccountType.USER:
            return SERVICE_ACCOUNTS[step.account_type]
        if not step.username:
            msg = "A user account requires a username"
            raise ServiceManagerError(msg)
        # Unqualified names refer to a local account
        if "\\" in step.username or "@" in step.username:
            return step.username
        return f".\\{step.username}"

    def _run_sc(self, args: list[str], service_name: str, secret: str | None = None) -> None:
        """Run an sc.exe command, translating failures to service-manager errors.

        Args:
            args: Full sc.exe command line.
            service_name: Service the command applies to, for error messages.
            secret: Argument value to mask in logs.

        Raises:
            ServiceNotFoundError: If sc.exe reports the service does not exist.
            ServiceManagerError: If sc.exe fails for any other reason.
        """
        shown = " ".join(_MASK if secret and arg == secret else arg for arg in args)

        if self.dry_run:
            logger.info("Dry run: %s", shown)
            return

        logger.info("Executing: %s", shown)
        try:
            result = run_command(args, timeout=None)
        except OSError as e:
            msg = f"Cannot execute sc.exe: {e}"
            raise ServiceManagerError(msg) from e

        if result.returncode == self._SERVICE_DOES_NOT_EXIST:
            raise ServiceNotFoundError(service_name)
        if not result.success:
            error_msg = result.output or f"exit code {result.returncode}"
            msg = f"sc {args[1]} '{service_name}' failed: {error_msg}"
            raise ServiceManagerError(msg)


def format_failure_actions(options: ServiceRecoveryOptions) -> str:
    """Render the three failure actions as an sc.exe ``actions=`` value.

    Each action is paired with the restart delay in milliseconds; trailing
    take-no-action entries are dropped.

    Args:
        options: Validated recovery options.

    Returns:
        Value such as ``restart/120000/reboot/120000``.
    """
    actions = list(options.actions)
    while actions and actions[-1] == RecoveryAction.TAKE_NO_ACTION:
        actions.pop()
    delay_ms = options.minutes_to_restart_service * 60_000
    return "/".join(f"{FAILURE_ACTIONS[action]}/{delay_ms}" for action in actions)
