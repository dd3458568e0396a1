"""Abstract base class for service managers.

This module defines the ServiceManager interface that every host
service-manager backend must implement, and the errors it raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from servicectl.core.installer import AccountRegistrationStep, ServiceRegistrationStep
    from servicectl.models.recovery import ServiceRecoveryOptions


class ServiceManagerError(Exception):
    """Base exception for service-manager failures."""


class ServiceNotFoundError(ServiceManagerError):
    """Raised when the named service is not registered."""

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        super().__init__(f"Service '{service_name}' is not registered")


class ServiceManager(ABC):
    """Abstract base class for host service managers.

    A service manager performs the blocking registration primitives the
    install transaction is built from. Each call either completes or
    raises :class:`ServiceManagerError`.

    Attributes:
        dry_run: If True, only log what would be done.

    Example:
        >>> manager = ScServiceManager(dry_run=True)
        >>> if manager.is_available():
        ...     manager.unregister_service("worker")
    """

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the service manager.

        Args:
            dry_run: If True, only log what would be done.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if the manager is in dry-run mode."""
        return self._dry_run

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this service manager can be used on the system.

        Returns:
            True if the service manager can be used, False otherwise.
        """

    @abstractmethod
    def register_service(self, step: ServiceRegistrationStep) -> None:
        """Register a new service.

        Args:
            step: Registration details for the service.

        Raises:
            ServiceManagerError: If registration fails, including when the
                service already exists.
        """

    @abstractmethod
    def unregister_service(self, service_name: str) -> None:
        """Remove a registered service.

        Args:
            service_name: Name of the service to remove.

        Raises:
            ServiceNotFoundError: If the service is not registered.
            ServiceManagerError: If removal fails.
        """

    @abstractmethod
    def configure_account(self, step: AccountRegistrationStep) -> None:
        """Set the account every service of the group runs under.

        Args:
            step: Account and the services it applies to.

        Raises:
            ServiceManagerError: If the account cannot be applied.
        """

    @abstractmethod
    def set_recovery_options(self, service_name: str, options: ServiceRecoveryOptions) -> None:
        """Apply failure-recovery settings to a registered service.

        Args:
            service_name: Name of the service.
            options: Validated recovery options.

        Raises:
            ServiceManagerError: If the settings cannot be applied.
        """
