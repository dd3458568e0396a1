"""Command-line argument models.

This module defines the data structures the context-sensitive parser
works with: definitions of recognized arguments, the errors collected
while parsing, and the parse result handed to context handlers.
"""

from dataclasses import dataclass, field
from enum import Enum


class ArgumentKind(Enum):
    """How an argument's value is supplied and displayed.

    Attributes:
        STRING: Free-form value that must follow the argument name.
        FLAG: Value may be omitted, in which case the default applies.
        PASSWORD: Like STRING, but never echoed or logged.
    """

    STRING = "string"
    FLAG = "flag"
    PASSWORD = "password"


@dataclass(frozen=True, slots=True)
class ArgumentDefinition:
    """Declaration of a single recognized command-line argument.

    Attributes:
        long_name: Unique key used in parsed arguments (e.g., 'action').
        short_name: Optional single-letter alias (e.g., 'a').
        description: Help text shown in usage output.
        required: Whether the argument must always be supplied.
        kind: How the value is supplied (string, flag, or password).
        accepted_values: Closed set of legal values, in display order.
        default_value: Value used when a flag is named without a value.
    """

    long_name: str
    short_name: str | None = None
    description: str = ""
    required: bool = False
    kind: ArgumentKind = ArgumentKind.STRING
    accepted_values: tuple[str, ...] | None = None
    default_value: str | None = None

    def __post_init__(self) -> None:
        """Validate definition data after initialization."""
        if not self.long_name:
            msg = "Argument long name cannot be empty"
            raise ValueError(msg)
        if self.kind == ArgumentKind.FLAG and self.default_value is None:
            msg = f"Flag argument '{self.long_name}' must declare a default value"
            raise ValueError(msg)
        if (
            self.accepted_values is not None
            and self.default_value is not None
            and self.default_value not in self.accepted_values
        ):
            msg = (
                f"Default value '{self.default_value}' of argument "
                f"'{self.long_name}' is not an accepted value"
            )
            raise ValueError(msg)

    @property
    def is_secret(self) -> bool:
        """Check if the value must be masked in output."""
        return self.kind == ArgumentKind.PASSWORD


class ArgumentErrorKind(Enum):
    """Category of a user-input error found while parsing.

    Attributes:
        MISSING_REQUIRED_ARGUMENT: A required argument was not supplied.
        INVALID_ARGUMENT_VALUE: A value is not among the accepted values.
        ARGUMENT_NOT_VALID_IN_CONTEXT: Argument not permitted for the action.
        MISSING_CREDENTIAL_FIELD: A credential required by the context is absent.
        UNKNOWN_ARGUMENT: The argument name is not registered.
        MISSING_ARGUMENT_VALUE: A non-flag argument was given without a value.
        UNEXPECTED_VALUE: A value appeared without an argument name.
        NO_MATCHING_CONTEXT: No registered context accepts the arguments.
    """

    MISSING_REQUIRED_ARGUMENT = "missing_required_argument"
    INVALID_ARGUMENT_VALUE = "invalid_argument_value"
    ARGUMENT_NOT_VALID_IN_CONTEXT = "argument_not_valid_in_context"
    MISSING_CREDENTIAL_FIELD = "missing_credential_field"
    UNKNOWN_ARGUMENT = "unknown_argument"
    MISSING_ARGUMENT_VALUE = "missing_argument_value"
    UNEXPECTED_VALUE = "unexpected_value"
    NO_MATCHING_CONTEXT = "no_matching_context"


@dataclass(frozen=True, slots=True)
class ArgumentError:
    """A single user-input error collected during parsing.

    Attributes:
        kind: Category of the error.
        message: Human-readable message shown to the user.
        argument: Name of the offending argument, if any.
    """

    kind: ArgumentErrorKind
    message: str
    argument: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class ParseResult:
    """Outcome of parsing one set of raw command-line arguments.

    Errors accumulate in order of discovery; parsing never stops at the
    first one so that all mistakes can be reported together.

    Attributes:
        arguments: Mapping of argument long name to its string value.
        errors: Errors collected so far, in discovery order.
        show_help: Whether the caller asked for usage information.
    """

    arguments: dict[str, str] = field(default_factory=lambda: {})
    errors: list[ArgumentError] = field(default_factory=lambda: [])
    show_help: bool = False

    @property
    def has_errors(self) -> bool:
        """Check if any error was collected."""
        return bool(self.errors)

    @property
    def error_messages(self) -> list[str]:
        """Return the collected error messages in order."""
        return [error.message for error in self.errors]


def missing_required_error(name: str) -> ArgumentError:
    """Create the error for a required argument that was not supplied."""
    return ArgumentError(
        kind=ArgumentErrorKind.MISSING_REQUIRED_ARGUMENT,
        message=f"Argument '{name}' is required.",
        argument=name,
    )


def invalid_value_error(name: str, value: str) -> ArgumentError:
    """Create the error for a value outside the accepted values."""
    return ArgumentError(
        kind=ArgumentErrorKind.INVALID_ARGUMENT_VALUE,
        message=f"Argument '{name}' has an invalid value '{value}'.",
        argument=name,
    )


def not_valid_in_context_error(name: str) -> ArgumentError:
    """Create the error for an argument the active context does not permit."""
    return ArgumentError(
        kind=ArgumentErrorKind.ARGUMENT_NOT_VALID_IN_CONTEXT,
        message=f"Argument '{name}' is not valid in this context.",
        argument=name,
    )


def required_in_context_error(name: str) -> ArgumentError:
    """Create the error for a credential field the context requires."""
    return ArgumentError(
        kind=ArgumentErrorKind.MISSING_CREDENTIAL_FIELD,
        message=f"Argument '{name}' is required in this context.",
        argument=name,
    )


def unknown_argument_error(token: str) -> ArgumentError:
    """Create the error for an argument name that is not registered."""
    return ArgumentError(
        kind=ArgumentErrorKind.UNKNOWN_ARGUMENT,
        message=f"Argument '{token}' is not recognized.",
        argument=token,
    )


def missing_value_error(name: str) -> ArgumentError:
    """Create the error for a non-flag argument given without a value."""
    return ArgumentError(
        kind=ArgumentErrorKind.MISSING_ARGUMENT_VALUE,
        message=f"Argument '{name}' requires a value.",
        argument=name,
    )


def unexpected_value_error(token: str) -> ArgumentError:
    """Create the error for a value that does not follow an argument name."""
    return ArgumentError(
        kind=ArgumentErrorKind.UNEXPECTED_VALUE,
        message=f"Unexpected value '{token}'.",
    )


def no_matching_context_error() -> ArgumentError:
    """Create the error for arguments that select no registered context."""
    return ArgumentError(
        kind=ArgumentErrorKind.NO_MATCHING_CONTEXT,
        message="The supplied arguments do not select a known action.",
    )
