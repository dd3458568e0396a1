"""Service instances hosted by servicectl.

This module provides the abstract service instance and the implementation
that runs an external executable.
"""

from servicectl.instances.base import ServiceInstance
from servicectl.instances.command import CommandServiceInstance

__all__ = ["CommandServiceInstance", "ServiceInstance"]
