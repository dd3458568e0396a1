"""Abstract base class for service instances.

A service instance is the program that runs as the service. It supplies
the identity used to seed the Configuration and the start/stop hooks the
runner drives.
"""

from abc import ABC, abstractmethod

from servicectl.models.recovery import ServiceRecoveryOptions
from servicectl.models.service import StartMode


class ServiceInstance(ABC):
    """Abstract base class for programs hosted as a service.

    Subclasses must provide a service name and the lifecycle hooks; the
    remaining properties have sensible defaults.

    Example:
        >>> class Worker(ServiceInstance):
        ...     service_name = "worker"
        ...     def start(self) -> None: ...
        ...     def stop(self) -> None: ...
        ...     def poll(self) -> int | None: return None
    """

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Return the name the service is registered under."""

    @property
    def display_name(self) -> str:
        """Return the human-friendly name (defaults to the service name)."""
        return self.service_name

    @property
    def description(self) -> str:
        """Return the description shown by the service manager."""
        return ""

    @property
    def services_depended_on(self) -> tuple[str, ...]:
        """Return the services that must start first, in order."""
        return ()

    @property
    def start_mode(self) -> StartMode:
        """Return when the service manager starts the service."""
        return StartMode.AUTOMATIC

    @property
    def recovery_options(self) -> ServiceRecoveryOptions | None:
        """Return the failure-recovery settings, if any."""
        return None

    @abstractmethod
    def start(self) -> None:
        """Start the service's work. Must return once started."""

    @abstractmethod
    def stop(self) -> None:
        """Stop the service's work and release its resources."""

    @abstractmethod
    def poll(self) -> int | None:
        """Check whether the service's work has ended on its own.

        Returns:
            Exit code if the work has ended, None while it is running.
        """
