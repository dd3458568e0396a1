"""Service managers for registering and removing services.

This module provides the abstract service-manager interface and the
concrete ``sc.exe`` implementation.
"""

from servicectl.managers.base import ServiceManager, ServiceManagerError, ServiceNotFoundError
from servicectl.managers.sc import ScServiceManager

__all__ = ["ScServiceManager", "ServiceManager", "ServiceManagerError", "ServiceNotFoundError"]
