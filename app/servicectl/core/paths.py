"""Path management for servicectl.

This module provides the locations of the service definition file and
user configuration, following the XDG Base Directory Specification for
per-user settings.

Service definition lookup order:
1. ``$SERVICECTL_CONFIG`` if set
2. ``service.toml`` in the current directory
3. ``service.toml`` next to the registered executable
4. ``~/.config/servicectl/service.toml`` (or XDG_CONFIG_HOME)
"""

import os
import shutil
import sys
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "servicectl"

# Environment variable overriding the service definition location
CONFIG_ENV_VAR = "SERVICECTL_CONFIG"

SERVICE_CONFIG_FILENAME = "service.toml"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/servicectl/ (or XDG_CONFIG_HOME/servicectl/).
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/servicectl/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_service_config_candidates(assembly_path: str | None = None) -> list[Path]:
    """List the places a service definition file is looked for, in order.

    Args:
        assembly_path: Path of the executable registered with the service
            manager. Its directory is searched when given.

    Returns:
        Candidate paths, most specific first.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return [Path(override)]

    candidates = [Path.cwd() / SERVICE_CONFIG_FILENAME]
    if assembly_path:
        candidates.append(Path(assembly_path).parent / SERVICE_CONFIG_FILENAME)
    candidates.append(get_config_dir() / SERVICE_CONFIG_FILENAME)
    return candidates


def default_assembly_path() -> str:
    """Get the path of the executable the service manager should launch.

    Prefers the installed ``servicectl`` console script; falls back to the
    script that started this process.

    Returns:
        Absolute path of the executable.
    """
    installed = shutil.which(APP_NAME)
    if installed:
        return str(Path(installed).resolve())
    return str(Path(sys.argv[0]).resolve())
