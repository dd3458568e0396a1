"""Service instance that runs an external executable.

Wraps the program described by a service definition file in a child
process: start launches it, stop terminates it and kills it if it does
not exit within the configured grace period.
"""

import logging
import subprocess

from servicectl.core.service_config import ServiceDefinition
from servicectl.instances.base import ServiceInstance
from servicectl.models.recovery import ServiceRecoveryOptions
from servicectl.models.service import StartMode

logger = logging.getLogger(__name__)


class CommandServiceInstance(ServiceInstance):
    """Runs a configured executable as the service's work.

    Attributes:
        definition: Service definition the instance was created from.
    """

    def __init__(self, definition: ServiceDefinition) -> None:
        """Initialize the instance.

        Args:
            definition: Validated service definition.
        """
        self.definition = definition
        self._recovery_options = definition.recovery_options()
        self._process: subprocess.Popen[bytes] | None = None

    @property
    def service_name(self) -> str:
        return self.definition.service.name

    @property
    def display_name(self) -> str:
        return self.definition.service.display_name or self.service_name

    @property
    def description(self) -> str:
        return self.definition.service.description

    @property
    def services_depended_on(self) -> tuple[str, ...]:
        return tuple(self.definition.service.depends_on)

    @property
    def start_mode(self) -> StartMode:
        return self.definition.service.start_mode

    @property
    def recovery_options(self) -> ServiceRecoveryOptions | None:
        return self._recovery_options

    @property
    def command(self) -> list[str]:
        """Return the executable followed by its arguments."""
        return [self.definition.service.executable, *self.definition.service.arguments]

    def start(self) -> None:
        """Launch the executable.

        Raises:
            RuntimeError: If the process is already running or cannot be started.
        """
        if self._process is not None and self._process.poll() is None:
            msg = f"Service '{self.service_name}' is already running"
            raise RuntimeError(msg)

        logger.info("Starting %s: %s", self.service_name, subprocess.list2cmdline(self.command))
        try:
            self._process = subprocess.Popen(
                self.command,
                cwd=self.definition.service.working_directory,
            )
        except OSError as e:
            msg = f"Cannot start '{self.definition.service.executable}': {e}"
            raise RuntimeError(msg) from e

    def stop(self) -> None:
        """Terminate the executable, killing it after the grace period."""
        process = self._process
        if process is None or process.poll() is not None:
            return

        timeout = self.definition.service.stop_timeout_seconds
        logger.info("Stopping %s (pid %d)", self.service_name, process.pid)
        process.terminate()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(
                "%s did not stop within %.0f seconds, killing it", self.service_name, timeout
            )
            process.kill()
            process.wait()

    def poll(self) -> int | None:
        """Return the exit code once the executable has ended."""
        if self._process is None:
            return None
        return self._process.poll()
