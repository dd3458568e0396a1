"""Command-line registry and action handlers.

Declares the arguments servicectl understands, the context rule for each
action, and the handlers that turn a validated parse result into a
Configuration. Handlers return the errors they find instead of raising,
and the parser accumulates them with the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from functools import partial
from typing import assert_never

from servicectl.core.parser import (
    ContextRule,
    ContextSelector,
    Parser,
    ParserSettings,
    validate_arguments_in_context,
)
from servicectl.models.arguments import (
    ArgumentDefinition,
    ArgumentError,
    ArgumentKind,
    ParseResult,
    required_in_context_error,
)
from servicectl.models.configuration import (
    AccountInfo,
    AccountType,
    Configuration,
    ConfigurationAction,
)

BOOLEAN_VALUES = ("true", "false")


class Credentials(str, Enum):
    """Values accepted by the ``credentials`` argument."""

    LOCAL_SERVICE = "localService"
    LOCAL_SYSTEM = "localSystem"
    NETWORK_SERVICE = "networkService"
    USER = "user"


# Action argument value -> configuration action
ACTION_BY_NAME: dict[str, ConfigurationAction] = {
    "install": ConfigurationAction.INSTALL,
    "uninstall": ConfigurationAction.UNINSTALL,
    "run": ConfigurationAction.RUN,
    "debug": ConfigurationAction.CONSOLE,
}

ARGUMENTS: tuple[ArgumentDefinition, ...] = (
    ArgumentDefinition(
        long_name="action",
        short_name="a",
        description="The action you wish to perform.",
        required=True,
        accepted_values=tuple(ACTION_BY_NAME),
    ),
    ArgumentDefinition(
        long_name="credentials",
        short_name="c",
        description="The credentials the service runs under.",
        accepted_values=tuple(c.value for c in Credentials),
    ),
    ArgumentDefinition(
        long_name="username",
        short_name="u",
        description="The username of the account the service runs under.",
    ),
    ArgumentDefinition(
        long_name="password",
        short_name="p",
        description="The password of the account the service runs under.",
        kind=ArgumentKind.PASSWORD,
    ),
    ArgumentDefinition(
        long_name="interactive",
        short_name="i",
        description=(
            "Allow the service to interact with the desktop. "
            "Only valid when credentials is 'localSystem'."
        ),
        kind=ArgumentKind.FLAG,
        accepted_values=BOOLEAN_VALUES,
        default_value="true",
    ),
    ArgumentDefinition(
        long_name="logToConsole",
        short_name="l",
        description="Log the output of the install/uninstall operation to the console.",
        kind=ArgumentKind.FLAG,
        accepted_values=BOOLEAN_VALUES,
        default_value="true",
    ),
    ArgumentDefinition(
        long_name="showCallStack",
        short_name="s",
        description="Log the call stack if the install/uninstall operation fails.",
        kind=ArgumentKind.FLAG,
        accepted_values=BOOLEAN_VALUES,
        default_value="true",
    ),
    ArgumentDefinition(
        long_name="logFile",
        short_name="f",
        description="File to write install/uninstall progress to.",
    ),
)

_COMMON_INSTALLER_ARGUMENTS = frozenset({"logToConsole", "showCallStack", "logFile"})

# Arguments each action's context permits before credential sub-validation
CONTEXT_ARGUMENTS: dict[ConfigurationAction, frozenset[str]] = {
    ConfigurationAction.INSTALL: frozenset(
        {"action", "credentials", "username", "password", "interactive"}
    )
    | _COMMON_INSTALLER_ARGUMENTS,
    ConfigurationAction.UNINSTALL: frozenset({"action"}) | _COMMON_INSTALLER_ARGUMENTS,
    ConfigurationAction.RUN: frozenset({"action"}),
    ConfigurationAction.CONSOLE: frozenset({"action"}),
}

# Arguments permitted by each credentials sub-context of install
CREDENTIAL_ARGUMENTS: dict[Credentials, frozenset[str]] = {
    Credentials.LOCAL_SYSTEM: frozenset({"action", "credentials", "interactive"}),
    Credentials.LOCAL_SERVICE: frozenset({"action", "credentials"}),
    Credentials.NETWORK_SERVICE: frozenset({"action", "credentials"}),
    Credentials.USER: frozenset({"action", "credentials", "username", "password"}),
}

_INSTALL_WITHOUT_CREDENTIALS = frozenset({"action"})


def build_parser(
    configuration: Configuration,
    settings: ParserSettings | None = None,
    logger: logging.Logger | None = None,
) -> Parser:
    """Create a parser with the servicectl arguments and action contexts.

    Args:
        configuration: Configuration the selected handler populates.
        settings: Optional token syntax override.
        logger: Optional logger passed to the parser.

    Returns:
        Parser ready to parse one invocation.
    """
    parser = Parser(configuration, settings=settings, logger=logger)
    for definition in ARGUMENTS:
        parser.add_argument(definition)

    for name, action in ACTION_BY_NAME.items():
        parser.add_context(
            ContextRule(
                name=name,
                selector=_action_selector(name),
                valid_arguments=CONTEXT_ARGUMENTS[action],
                handler=partial(apply_action, action),
            )
        )
    return parser


def _action_selector(name: str) -> ContextSelector:
    """Create a selector matching ``--action <name>``."""

    def selector(arguments: Mapping[str, str]) -> bool:
        return arguments.get("action") == name

    return selector


def apply_action(
    action: ConfigurationAction,
    result: ParseResult,
    configuration: Configuration,
) -> list[ArgumentError]:
    """Populate ``configuration`` for the selected action.

    Args:
        action: Action selected by the context rule.
        result: Parse result whose arguments passed context validation.
        configuration: Configuration to populate.

    Returns:
        Errors found by the action's own validation.
    """
    configuration.action = action
    match action:
        case ConfigurationAction.INSTALL:
            return _install(result.arguments, configuration)
        case ConfigurationAction.UNINSTALL:
            apply_common_installer_settings(result.arguments, configuration)
            return []
        case ConfigurationAction.RUN | ConfigurationAction.CONSOLE:
            return []
        case _:
            assert_never(action)


def _install(arguments: Mapping[str, str], configuration: Configuration) -> list[ArgumentError]:
    """Validate install arguments per credentials and set the account."""
    errors: list[ArgumentError] = []
    credentials_value = arguments.get("credentials")

    if credentials_value is None:
        # Without credentials only the action is accepted
        errors.extend(validate_arguments_in_context(arguments, _INSTALL_WITHOUT_CREDENTIALS))
    else:
        credentials = Credentials(credentials_value)
        errors.extend(validate_arguments_in_context(arguments, CREDENTIAL_ARGUMENTS[credentials]))
        match credentials:
            case Credentials.LOCAL_SYSTEM:
                configuration.account_info = AccountInfo(AccountType.LOCAL_SYSTEM)
                configuration.allow_interact_with_desktop = arguments.get("interactive") == "true"
            case Credentials.LOCAL_SERVICE:
                configuration.account_info = AccountInfo(AccountType.LOCAL_SERVICE)
            case Credentials.NETWORK_SERVICE:
                configuration.account_info = AccountInfo(AccountType.NETWORK_SERVICE)
            case Credentials.USER:
                errors.extend(_require_user_credentials(arguments))
                if "username" in arguments and "password" in arguments:
                    configuration.account_info = AccountInfo.for_user(
                        arguments["username"], arguments["password"]
                    )
            case _:
                assert_never(credentials)

    apply_common_installer_settings(arguments, configuration)
    return errors


def _require_user_credentials(arguments: Mapping[str, str]) -> list[ArgumentError]:
    """Report each user credential field that is missing."""
    return [
        required_in_context_error(name)
        for name in ("username", "password")
        if name not in arguments
    ]


def apply_common_installer_settings(
    arguments: Mapping[str, str],
    configuration: Configuration,
) -> None:
    """Copy the logging settings shared by install and uninstall.

    Each setting is only copied when its own argument is present.
    """
    if "logToConsole" in arguments:
        configuration.log_to_console = arguments["logToConsole"] == "true"
    if "showCallStack" in arguments:
        configuration.show_call_stack = arguments["showCallStack"] == "true"
    if "logFile" in arguments:
        configuration.log_file = arguments["logFile"]
