"""Service failure-recovery models.

This module defines the recovery settings the service manager applies
when a service process terminates unexpectedly, together with the
cross-field rules those settings must satisfy.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class RecoveryAction(str, Enum):
    """Policy applied by the service manager after a failure.

    Attributes:
        TAKE_NO_ACTION: Leave the service stopped.
        RESTART_THE_SERVICE: Restart the service after a delay.
        RESTART_THE_COMPUTER: Reboot the host.
        RUN_A_PROGRAM: Launch a configured command.
    """

    TAKE_NO_ACTION = "take_no_action"
    RESTART_THE_SERVICE = "restart_the_service"
    RESTART_THE_COMPUTER = "restart_the_computer"
    RUN_A_PROGRAM = "run_a_program"


class RecoveryInvariantViolation(Exception):
    """Raised when recovery settings contradict the configured actions."""

    def __init__(self, setting: str, action: RecoveryAction) -> None:
        self.setting = setting
        self.action = action
        super().__init__(
            f"Setting '{setting}' is not valid when there is no "
            f"'{action.value}' failure action defined."
        )


class RecoveryOptionsRecord(BaseModel):
    """Persisted form of recovery options, as read from a config file."""

    model_config = ConfigDict(extra="forbid")

    first_failure: Annotated[
        RecoveryAction, Field(description="Action after the first failure")
    ] = RecoveryAction.TAKE_NO_ACTION
    second_failure: Annotated[
        RecoveryAction, Field(description="Action after the second failure")
    ] = RecoveryAction.TAKE_NO_ACTION
    subsequent_failures: Annotated[
        RecoveryAction, Field(description="Action after every later failure")
    ] = RecoveryAction.TAKE_NO_ACTION
    days_to_reset_fail_count: Annotated[
        int, Field(ge=0, description="Days without failure before the count resets")
    ] = 0
    minutes_to_restart_service: Annotated[
        int, Field(ge=0, description="Delay before restarting the service")
    ] = 1
    reboot_message: Annotated[
        str | None, Field(description="Message broadcast before a reboot")
    ] = None
    command_to_launch_on_failure: Annotated[
        str | None, Field(description="Command run by the run-a-program action")
    ] = None


@dataclass(frozen=True, slots=True)
class ServiceRecoveryOptions:
    """Failure-recovery settings for one service.

    Instances compare and hash by value over all seven fields.

    Attributes:
        first_failure_action: Action after the first failure.
        second_failure_action: Action after the second failure.
        subsequent_failure_actions: Action after every later failure.
        days_to_reset_fail_count: Days without failure before the count resets.
        minutes_to_restart_service: Delay before a restart-the-service action.
        reboot_message: Message broadcast before a restart-the-computer action.
        command_to_launch_on_failure: Command for the run-a-program action.
    """

    first_failure_action: RecoveryAction = RecoveryAction.TAKE_NO_ACTION
    second_failure_action: RecoveryAction = RecoveryAction.TAKE_NO_ACTION
    subsequent_failure_actions: RecoveryAction = RecoveryAction.TAKE_NO_ACTION
    days_to_reset_fail_count: int = 0
    minutes_to_restart_service: int = 1
    reboot_message: str | None = None
    command_to_launch_on_failure: str | None = None

    @property
    def actions(self) -> tuple[RecoveryAction, RecoveryAction, RecoveryAction]:
        """Return the first, second, and subsequent failure actions."""
        return (
            self.first_failure_action,
            self.second_failure_action,
            self.subsequent_failure_actions,
        )

    def is_action_defined(self, action: RecoveryAction) -> bool:
        """Check if any of the three failure actions is ``action``."""
        return action in self.actions

    def validate(self) -> None:
        """Check the cross-field rules.

        Raises:
            RecoveryInvariantViolation: If a reboot message, failure command,
                or restart delay is set without the matching action.
        """
        if self.reboot_message and not self.is_action_defined(
            RecoveryAction.RESTART_THE_COMPUTER
        ):
            raise RecoveryInvariantViolation(
                "reboot_message", RecoveryAction.RESTART_THE_COMPUTER
            )
        if self.command_to_launch_on_failure and not self.is_action_defined(
            RecoveryAction.RUN_A_PROGRAM
        ):
            raise RecoveryInvariantViolation(
                "command_to_launch_on_failure", RecoveryAction.RUN_A_PROGRAM
            )
        if self.minutes_to_restart_service > 1 and not self.is_action_defined(
            RecoveryAction.RESTART_THE_SERVICE
        ):
            raise RecoveryInvariantViolation(
                "minutes_to_restart_service", RecoveryAction.RESTART_THE_SERVICE
            )

    @classmethod
    def from_record(cls, record: RecoveryOptionsRecord) -> "ServiceRecoveryOptions":
        """Build validated recovery options from their persisted form.

        Args:
            record: Recovery options as read from a configuration file.

        Returns:
            Validated ServiceRecoveryOptions.

        Raises:
            RecoveryInvariantViolation: If the record breaks a cross-field rule.
        """
        options = cls(
            first_failure_action=record.first_failure,
            second_failure_action=record.second_failure,
            subsequent_failure_actions=record.subsequent_failures,
            days_to_reset_fail_count=record.days_to_reset_fail_count,
            minutes_to_restart_service=record.minutes_to_restart_service,
            reboot_message=record.reboot_message,
            command_to_launch_on_failure=record.command_to_launch_on_failure,
        )
        options.validate()
        return options
