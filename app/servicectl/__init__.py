"""servicectl - Turn a plain executable into a manageable background service.

Parses an action (install, uninstall, run, debug) from the command line,
validates it against per-action rules, and registers or removes the
service with the host's service manager in a single transaction.
"""

__version__ = "0.1.0"
