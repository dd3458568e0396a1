"""Foreground and supervised execution of a service instance.

``debug`` runs the instance attached to the terminal until Ctrl+C;
``run`` runs it under the service manager until a termination signal
arrives. Either way the loop also ends when the instance's work exits
on its own.
"""

import logging
import signal
import threading
from types import FrameType

from servicectl.instances.base import ServiceInstance

logger = logging.getLogger(__name__)


def _stop_signals(supervised: bool) -> list[signal.Signals]:
    """Return the signals that request a stop in the given mode."""
    signals = [signal.SIGINT]
    if supervised:
        signals.append(signal.SIGTERM)
        if hasattr(signal, "SIGBREAK"):
            signals.append(signal.SIGBREAK)
    return signals


def run_service(
    instance: ServiceInstance,
    *,
    supervised: bool,
    poll_interval: float = 1.0,
) -> int:
    """Run a service instance until it is asked to stop or exits.

    Must be called from the main thread, since it installs signal handlers.

    Args:
        instance: Service instance to run.
        supervised: True when started by the service manager, False when
            attached to a terminal.
        poll_interval: Seconds between checks of the instance's state.

    Returns:
        0 after a requested stop, otherwise the instance's exit code.
    """
    stop_requested = threading.Event()

    def request_stop(signum: int, frame: FrameType | None) -> None:
        logger.info("Received signal %d, stopping %s", signum, instance.service_name)
        stop_requested.set()

    previous = {sig: signal.signal(sig, request_stop) for sig in _stop_signals(supervised)}
    mode = "supervised" if supervised else "console"
    logger.info("Running %s in %s mode", instance.service_name, mode)

    try:
        instance.start()
        while not stop_requested.is_set():
            exit_code = instance.poll()
            if exit_code is not None:
                logger.warning("%s exited with code %d", instance.service_name, exit_code)
                return exit_code
            stop_requested.wait(poll_interval)
        return 0
    finally:
        instance.stop()
        for sig, handler in previous.items():
            signal.signal(sig, handler)
