"""Context-sensitive command-line parser.

The parser binds raw tokens to registered argument definitions, checks
required and accepted values, then picks the first context rule whose
selector matches the parsed arguments. Each context declares which
arguments it permits and the handler that fills in the Configuration.

User-input problems never raise: they are collected in
:attr:`ParseResult.errors` so that every mistake is reported at once.
Only a misconfigured registry (a programming error) raises.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass

from servicectl.models.arguments import (
    ArgumentDefinition,
    ArgumentError,
    ArgumentKind,
    ParseResult,
    invalid_value_error,
    missing_required_error,
    missing_value_error,
    no_matching_context_error,
    not_valid_in_context_error,
    unexpected_value_error,
    unknown_argument_error,
)
from servicectl.models.configuration import Configuration

ContextSelector = Callable[[Mapping[str, str]], bool]
ContextHandler = Callable[[ParseResult, Configuration], list[ArgumentError]]

MASKED_VALUE = "********"


@dataclass(frozen=True, slots=True)
class ContextRule:
    """A set of arguments and a handler activated by a selector.

    Attributes:
        name: Short label used in logs (e.g., 'install').
        selector: Predicate deciding whether this context is active.
        valid_arguments: Argument long names permitted in this context.
        handler: Fills in the Configuration and returns any further errors.
    """

    name: str
    selector: ContextSelector
    valid_arguments: frozenset[str]
    handler: ContextHandler


@dataclass(frozen=True, slots=True)
class ParserSettings:
    """Token syntax accepted by the parser.

    Attributes:
        long_prefix: Prefix of long argument names (``--action``).
        short_prefix: Prefix of short argument names (``-a``).
        key_value_separator: Separator for inline values (``--action=run``).
        help_tokens: Tokens that request usage information.
    """

    long_prefix: str = "--"
    short_prefix: str = "-"
    key_value_separator: str = "="
    help_tokens: tuple[str, ...] = ("-h", "--help", "-?", "/?")


def validate_arguments_in_context(
    arguments: Iterable[str],
    valid_arguments: Collection[str],
) -> list[ArgumentError]:
    """Report every argument that is not permitted in a context.

    Args:
        arguments: Long names of the supplied arguments.
        valid_arguments: Long names the context permits.

    Returns:
        One error per argument outside the whitelist, in input order.
    """
    return [not_valid_in_context_error(name) for name in arguments if name not in valid_arguments]


class Parser:
    """Parses raw arguments and dispatches to the matching context.

    The parser is bound to the Configuration its context handlers fill in;
    one parser serves one invocation.

    Example:
        >>> from servicectl.core.handlers import build_parser
        >>> configuration = Configuration()
        >>> parser = build_parser(configuration)
        >>> result = parser.parse(["-a", "install", "-c", "localService"])
        >>> result.has_errors
        False
    """

    def __init__(
        self,
        configuration: Configuration,
        settings: ParserSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            configuration: Configuration the context handlers populate.
            settings: Token syntax. Defaults to ``--long``/``-s``/``=``.
            logger: Logger for progress messages. Defaults to the module logger.
        """
        self._configuration = configuration
        self._settings = settings or ParserSettings()
        self._logger = logger or logging.getLogger(__name__)
        self._definitions: dict[str, ArgumentDefinition] = {}
        self._short_names: dict[str, str] = {}
        self._contexts: list[ContextRule] = []

    @property
    def configuration(self) -> Configuration:
        """Return the Configuration populated by context handlers."""
        return self._configuration

    @property
    def settings(self) -> ParserSettings:
        """Return the token syntax settings."""
        return self._settings

    @property
    def definitions(self) -> tuple[ArgumentDefinition, ...]:
        """Return the registered argument definitions in registration order."""
        return tuple(self._definitions.values())

    @property
    def contexts(self) -> tuple[ContextRule, ...]:
        """Return the registered context rules in evaluation order."""
        return tuple(self._contexts)

    def add_argument(self, definition: ArgumentDefinition) -> None:
        """Register an argument definition.

        Raises:
            ValueError: If the long or short name is already registered.
        """
        if definition.long_name in self._definitions:
            msg = f"Argument '{definition.long_name}' is already registered"
            raise ValueError(msg)
        if definition.short_name is not None:
            if definition.short_name in self._short_names:
                msg = f"Short name '{definition.short_name}' is already registered"
                raise ValueError(msg)
            self._short_names[definition.short_name] = definition.long_name
        self._definitions[definition.long_name] = definition

    def add_context(self, rule: ContextRule) -> None:
        """Register a context rule after the existing ones.

        Raises:
            ValueError: If the rule permits an argument that is not registered.
        """
        unknown = sorted(set(rule.valid_arguments) - set(self._definitions))
        if unknown:
            msg = f"Context '{rule.name}' permits unregistered arguments: {unknown}"
            raise ValueError(msg)
        self._contexts.append(rule)

    def parse(self, raw_args: Sequence[str]) -> ParseResult:
        """Parse raw arguments and run the matching context handler.

        Args:
            raw_args: Command-line tokens, without the program name.

        Returns:
            ParseResult with the bound arguments, all collected errors, and
            whether help was requested.
        """
        result = ParseResult()
        tokens = [token for token in raw_args if token not in self._settings.help_tokens]
        result.show_help = len(tokens) != len(raw_args)

        self._bind_tokens(tokens, result)
        result.errors.extend(self._validate_definitions(result.arguments))
        self._logger.debug("Parsed arguments: %s", self.masked(result.arguments))

        if result.show_help:
            return result

        context = self.select_context(result.arguments)
        if context is None:
            if not result.has_errors:
                result.errors.append(no_matching_context_error())
            return result

        self._logger.debug("Selected context '%s'", context.name)
        result.errors.extend(
            validate_arguments_in_context(result.arguments, context.valid_arguments)
        )
        if result.has_errors:
            self._logger.debug("Parsing found %d error(s)", len(result.errors))
            return result

        result.errors.extend(context.handler(result, self._configuration))
        return result

    def select_context(self, arguments: Mapping[str, str]) -> ContextRule | None:
        """Return the first context whose selector matches, if any."""
        for context in self._contexts:
            if context.selector(arguments):
                return context
        return None

    def masked(self, arguments: Mapping[str, str]) -> dict[str, str]:
        """Return a copy of ``arguments`` with password values hidden."""
        masked: dict[str, str] = {}
        for name, value in arguments.items():
            definition = self._definitions.get(name)
            masked[name] = MASKED_VALUE if definition and definition.is_secret else value
        return masked

    def _bind_tokens(self, tokens: list[str], result: ParseResult) -> None:
        """Bind name/value token pairs to definitions, recording token errors."""
        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1

            split = self._split_option(token)
            if split is None:
                result.errors.append(unexpected_value_error(token))
                continue
            name, value = split

            definition = self._lookup(name)
            if definition is None:
                result.errors.append(unknown_argument_error(token))
                continue

            if value is None and index < len(tokens) and self._takes_value(definition, tokens[index]):
                value = tokens[index]
                index += 1

            if value is None:
                if definition.kind != ArgumentKind.FLAG:
                    result.errors.append(missing_value_error(definition.long_name))
                    continue
                value = definition.default_value

            if value is not None:
                result.arguments[definition.long_name] = value

    def _split_option(self, token: str) -> tuple[str, str | None] | None:
        """Split an option token into name and inline value.

        Returns:
            (name, value) where value is None when not given inline, or None
            if the token is not an option.
        """
        for prefix in (self._settings.long_prefix, self._settings.short_prefix):
            if token.startswith(prefix) and len(token) > len(prefix):
                body = token[len(prefix) :]
                name, separator, value = body.partition(self._settings.key_value_separator)
                return name, (value if separator else None)
        return None

    def _lookup(self, name: str) -> ArgumentDefinition | None:
        """Find a definition by long or short name."""
        definition = self._definitions.get(name)
        if definition is None and name in self._short_names:
            definition = self._definitions[self._short_names[name]]
        return definition

    def _takes_value(self, definition: ArgumentDefinition, candidate: str) -> bool:
        """Decide whether ``candidate`` is the value of ``definition``."""
        if self._split_option(candidate) is not None:
            return False
        if definition.kind == ArgumentKind.FLAG:
            return definition.accepted_values is not None and candidate in definition.accepted_values
        return True

    def _validate_definitions(self, arguments: Mapping[str, str]) -> list[ArgumentError]:
        """Check required arguments and accepted values."""
        errors: list[ArgumentError] = []
        for definition in self._definitions.values():
            value = arguments.get(definition.long_name)
            if value is None:
                if definition.required:
                    errors.append(missing_required_error(definition.long_name))
                continue
            if definition.accepted_values is not None and value not in definition.accepted_values:
                errors.append(invalid_value_error(definition.long_name, value))
        return errors
