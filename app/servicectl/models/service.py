"""Service descriptor models.

This module defines the description of a single service handed to the
install orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum

from servicectl.models.recovery import ServiceRecoveryOptions


class StartMode(str, Enum):
    """When the service manager starts the service.

    Attributes:
        AUTOMATIC: Start at boot.
        MANUAL: Start on demand.
        DISABLED: Never start.
    """

    AUTOMATIC = "automatic"
    MANUAL = "manual"
    DISABLED = "disabled"


@dataclass(frozen=True, slots=True)
class ServiceInfo:
    """Description of one service to register.

    Attributes:
        service_name: Name the service is registered under.
        display_name: Human-friendly name shown by the service manager.
        description: Longer description shown by the service manager.
        start_mode: When the service starts.
        services_depended_on: Services that must start first, in order.
        recovery_options: Optional failure-recovery settings.
    """

    service_name: str
    display_name: str = ""
    description: str = ""
    start_mode: StartMode = StartMode.AUTOMATIC
    services_depended_on: tuple[str, ...] = field(default_factory=tuple)
    recovery_options: ServiceRecoveryOptions | None = None

    def __post_init__(self) -> None:
        """Validate service data after initialization."""
        if not self.service_name:
            msg = "Service name cannot be empty"
            raise ValueError(msg)
