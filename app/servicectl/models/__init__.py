"""Data models for servicectl.

This module exports the core data structures used throughout the application.
"""

from servicectl.models.arguments import (
    ArgumentDefinition,
    ArgumentError,
    ArgumentErrorKind,
    ArgumentKind,
    ParseResult,
)
from servicectl.models.configuration import (
    AccountInfo,
    AccountType,
    Configuration,
    ConfigurationAction,
)
from servicectl.models.recovery import (
    RecoveryAction,
    RecoveryInvariantViolation,
    RecoveryOptionsRecord,
    ServiceRecoveryOptions,
)
from servicectl.models.service import ServiceInfo, StartMode

__all__ = [
    "AccountInfo",
    "AccountType",
    "ArgumentDefinition",
    "ArgumentError",
    "ArgumentErrorKind",
    "ArgumentKind",
    "Configuration",
    "ConfigurationAction",
    "ParseResult",
    "RecoveryAction",
    "RecoveryInvariantViolation",
    "RecoveryOptionsRecord",
    "ServiceInfo",
    "ServiceRecoveryOptions",
    "StartMode",
]
