"""Rich display functions for usage, parse errors, and install steps."""

from collections.abc import Sequence

from rich.markup import escape
from rich.table import Table

from servicectl.core.installer import InstallStep
from servicectl.core.parser import Parser
from servicectl.models.arguments import ArgumentDefinition, ParseResult
from servicectl.utils.formatting import console, err_console


def _format_names(definition: ArgumentDefinition, parser: Parser) -> str:
    """Format the long and short spellings of an argument."""
    settings = parser.settings
    names = f"{settings.long_prefix}{definition.long_name}"
    if definition.short_name:
        names += f", {settings.short_prefix}{definition.short_name}"
    return names


def create_usage_table(parser: Parser) -> Table:
    """Create a Rich table describing every registered argument.

    Args:
        parser: Parser whose argument definitions are shown.

    Returns:
        Rich Table with Argument, Values, Default, and Description columns.
    """
    table = Table(
        title="Arguments",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Argument", no_wrap=True)
    table.add_column("Values")
    table.add_column("Default", justify="center")
    table.add_column("Description")

    for definition in parser.definitions:
        names = f"[argument]{_format_names(definition, parser)}[/argument]"
        if definition.required:
            names += " [warning](required)[/warning]"

        if definition.is_secret:
            values = "[secret]<hidden>[/secret]"
        elif definition.accepted_values:
            values = " | ".join(definition.accepted_values)
        else:
            values = "[muted]<value>[/muted]"

        table.add_row(
            names,
            values,
            definition.default_value or "",
            f"[muted]{definition.description}[/muted]",
        )

    return table


def print_usage(parser: Parser, program: str = "servicectl") -> None:
    """Print the usage line and argument table."""
    settings = parser.settings
    console.print(
        f"Usage: {program} {settings.long_prefix}action"
        f"{settings.key_value_separator}<install|uninstall|run|debug> \\[options]\n"
    )
    console.print(create_usage_table(parser))


def print_parse_errors(result: ParseResult) -> None:
    """Print every collected parse error, in order."""
    err_console.print(f"[error]Found {len(result.errors)} error(s) in the arguments:[/]")
    for error in result.errors:
        err_console.print(f"  [error]-[/] {escape(error.message)}")
    err_console.print("[muted]Run with --help to see the accepted arguments.[/muted]")


def create_steps_table(steps: Sequence[InstallStep], title: str = "Planned Steps") -> Table:
    """Create a Rich table listing transaction steps in commit order.

    Args:
        steps: Steps to display.
        title: Table title.

    Returns:
        Rich Table with a numbered row per step.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("#", width=3, justify="right")
    table.add_column("Step")

    for index, step in enumerate(steps, start=1):
        table.add_row(str(index), escape(step.name))

    return table
