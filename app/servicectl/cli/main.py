"""Main CLI application entry point.

Defines the Typer application. The service arguments use their own
grammar (``--action=install``, ``-a install``, ``/?``), so every token is
forwarded untouched to the ServiceApplication.
"""

import os

import typer

from servicectl.core.application import ServiceApplication
from servicectl.core.paths import default_assembly_path
from servicectl.core.service_config import find_service_config, load_service_definition
from servicectl.instances.command import CommandServiceInstance
from servicectl.managers.sc import ScServiceManager

DRY_RUN_ENV_VAR = "SERVICECTL_DRY_RUN"
DEBUG_ENV_VAR = "SERVICECTL_DEBUG"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

app = typer.Typer(
    name="servicectl",
    help="Install, uninstall, and host a program as a Windows service.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _env_flag(name: str) -> bool:
    """Check whether an environment variable holds a truthy value."""
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def _load_command_service(assembly_path: str) -> CommandServiceInstance:
    """Create the service instance described by the service definition file."""
    definition = load_service_definition(find_service_config(assembly_path))
    return CommandServiceInstance(definition)


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    },
)
def main(ctx: typer.Context) -> None:
    """servicectl - host a program as a Windows service.

    Pass --action=install|uninstall|run|debug and its options; run with
    --help to list them.
    """
    assembly_path = default_assembly_path()
    application = ServiceApplication(
        lambda: _load_command_service(assembly_path),
        manager=ScServiceManager(dry_run=_env_flag(DRY_RUN_ENV_VAR)),
        assembly_path=assembly_path,
        debug=_env_flag(DEBUG_ENV_VAR),
    )
    exit_code = application.run(list(ctx.args))
    if exit_code != 0:
        raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
