"""Service definition file I/O.

This module loads the TOML file describing the executable to run as a
service, validated with Pydantic models. Recovery options in the file
are checked against their cross-field rules before the definition is
returned, so an invalid file never reaches the installer.

Example file::

    [service]
    name = "worker"
    display_name = "Worker"
    executable = "C:/apps/worker.exe"
    arguments = ["--port", "8080"]
    start_mode = "automatic"
    depends_on = ["Tcpip"]

    [recovery]
    first_failure = "restart_the_service"
    minutes_to_restart_service = 2
"""

import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from servicectl.core.paths import get_service_config_candidates
from servicectl.models.recovery import (
    RecoveryInvariantViolation,
    RecoveryOptionsRecord,
    ServiceRecoveryOptions,
)
from servicectl.models.service import ServiceInfo, StartMode


class ServiceConfigError(Exception):
    """Base exception for service definition errors."""


class ServiceConfigNotFoundError(ServiceConfigError):
    """Raised when no service definition file exists."""


class ServiceConfigParseError(ServiceConfigError):
    """Raised when the service definition is not valid TOML."""


class ServiceConfigValidationError(ServiceConfigError):
    """Raised when the service definition content is invalid."""


class ServiceSection(BaseModel):
    """The ``[service]`` table: identity and command of the service.

    Attributes:
        name: Name the service is registered under.
        display_name: Human-friendly name (defaults to the name).
        description: Description shown by the service manager.
        start_mode: When the service starts.
        depends_on: Services that must start first, in order.
        executable: Program to run.
        arguments: Arguments passed to the program.
        working_directory: Directory the program runs in.
        stop_timeout_seconds: Grace period before the program is killed.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[
        str,
        Field(min_length=1, max_length=256, pattern=r"^[A-Za-z0-9_.\-]+$", description="Service name"),
    ]
    display_name: Annotated[str | None, Field(description="Display name")] = None
    description: Annotated[str, Field(description="Service description")] = ""
    start_mode: Annotated[StartMode, Field(description="When the service starts")] = (
        StartMode.AUTOMATIC
    )
    depends_on: Annotated[
        list[str],
        Field(default_factory=list, description="Services that must start first"),
    ]
    executable: Annotated[str, Field(min_length=1, description="Program to run")]
    arguments: Annotated[
        list[str],
        Field(default_factory=list, description="Program arguments"),
    ]
    working_directory: Annotated[str | None, Field(description="Working directory")] = None
    stop_timeout_seconds: Annotated[
        float,
        Field(gt=0, le=600, description="Seconds to wait for the program to stop"),
    ] = 30.0


class ServiceDefinition(BaseModel):
    """Complete service definition file.

    Attributes:
        service: Identity and command of the service.
        recovery: Optional failure-recovery settings.
    """

    model_config = ConfigDict(extra="forbid")

    service: Annotated[ServiceSection, Field(description="Service section")]
    recovery: Annotated[
        RecoveryOptionsRecord | None,
        Field(description="Failure-recovery settings"),
    ] = None

    def recovery_options(self) -> ServiceRecoveryOptions | None:
        """Return validated recovery options, if the file declares any.

        Raises:
            RecoveryInvariantViolation: If the recovery table breaks a rule.
        """
        if self.recovery is None:
            return None
        return ServiceRecoveryOptions.from_record(self.recovery)

    def to_service_info(self) -> ServiceInfo:
        """Convert the definition to the descriptor the installer consumes."""
        return ServiceInfo(
            service_name=self.service.name,
            display_name=self.service.display_name or self.service.name,
            description=self.service.description,
            start_mode=self.service.start_mode,
            services_depended_on=tuple(self.service.depends_on),
            recovery_options=self.recovery_options(),
        )


def find_service_config(assembly_path: str | None = None) -> Path:
    """Return the first existing service definition file.

    Args:
        assembly_path: Executable registered with the service manager; its
            directory is searched too.

    Returns:
        Path of the service definition file.

    Raises:
        ServiceConfigNotFoundError: If none of the candidate files exist.
    """
    candidates = get_service_config_candidates(assembly_path)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    searched = ", ".join(str(c) for c in candidates)
    raise ServiceConfigNotFoundError(f"Service definition not found (searched: {searched})")


def load_service_definition(path: Path | None = None) -> ServiceDefinition:
    """Load and validate a service definition from a TOML file.

    Args:
        path: Path to the file. If None, the first existing candidate is used.

    Returns:
        Validated ServiceDefinition whose recovery options satisfy their rules.

    Raises:
        ServiceConfigNotFoundError: If the file doesn't exist.
        ServiceConfigParseError: If the TOML syntax is invalid.
        ServiceConfigValidationError: If the content doesn't match the schema
            or the recovery options break a rule.
    """
    config_path = path or find_service_config()

    if not config_path.exists():
        raise ServiceConfigNotFoundError(f"Service definition not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ServiceConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ServiceConfigError(f"Failed to read service definition: {e}") from e

    try:
        definition = ServiceDefinition.model_validate(data)
    except ValidationError as e:
        raise ServiceConfigValidationError(f"Invalid service definition: {e}") from e

    try:
        definition.recovery_options()
    except RecoveryInvariantViolation as e:
        raise ServiceConfigValidationError(f"Invalid recovery options: {e}") from e

    return definition
