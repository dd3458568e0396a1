"""Logging configuration for a servicectl run.

Routes the ``servicectl`` logger to the console through Rich and, when a
log file was requested, to that file as well.
"""

import logging

from rich.logging import RichHandler

from servicectl.models.configuration import Configuration
from servicectl.utils.formatting import err_console

LOGGER_NAME = "servicectl"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(configuration: Configuration, debug: bool = False) -> logging.Logger:
    """Attach handlers for the run described by ``configuration``.

    Console logging is on unless explicitly disabled. Tracebacks are
    rendered unless call stacks were explicitly turned off. Handlers from
    a previous call are replaced.

    Args:
        configuration: Configuration with the logging settings.
        debug: If True, log at DEBUG level instead of INFO.

    Returns:
        The configured ``servicectl`` logger.

    Raises:
        OSError: If the log file cannot be opened.
    """
    app_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if configuration.log_to_console is not False:
        app_logger.addHandler(
            RichHandler(
                console=err_console,
                show_path=False,
                rich_tracebacks=configuration.show_call_stack is not False,
            )
        )

    if configuration.log_file:
        file_handler = logging.FileHandler(configuration.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        app_logger.addHandler(file_handler)

    return app_logger
