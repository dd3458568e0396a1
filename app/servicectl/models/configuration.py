"""Configuration models produced by the command-line handlers.

A Configuration is filled in by exactly one context handler during a
single parse and describes the requested action completely.
"""

from dataclasses import dataclass, field
from enum import Enum


class ConfigurationAction(Enum):
    """Action selected on the command line.

    Attributes:
        INSTALL: Register the service with the service manager.
        UNINSTALL: Remove the service from the service manager.
        RUN: Run under service-manager supervision.
        CONSOLE: Run in the foreground, attached to the terminal.
    """

    INSTALL = "install"
    UNINSTALL = "uninstall"
    RUN = "run"
    CONSOLE = "console"


class AccountType(Enum):
    """Identity the service process runs as.

    Attributes:
        LOCAL_SERVICE: Built-in low-privilege local account.
        LOCAL_SYSTEM: Built-in highly privileged local account.
        NETWORK_SERVICE: Built-in account with network credentials.
        USER: Explicit user account with username and password.
    """

    LOCAL_SERVICE = "local_service"
    LOCAL_SYSTEM = "local_system"
    NETWORK_SERVICE = "network_service"
    USER = "user"


@dataclass(frozen=True, slots=True)
class AccountInfo:
    """Account the service runs under.

    Username and password are only meaningful when the account type is
    USER; the password is excluded from ``repr``.

    Attributes:
        account_type: Identity the service process runs as.
        username: Account name for USER accounts.
        password: Account password for USER accounts.
    """

    account_type: AccountType = AccountType.LOCAL_SYSTEM
    username: str | None = None
    password: str | None = field(default=None, repr=False)

    @classmethod
    def for_user(cls, username: str, password: str) -> "AccountInfo":
        """Create a USER account with the given credentials."""
        return cls(account_type=AccountType.USER, username=username, password=password)

    @property
    def has_credentials(self) -> bool:
        """Check if credentials apply: a USER account with both fields set."""
        return self.account_type == AccountType.USER and bool(self.username) and bool(self.password)


@dataclass(slots=True)
class Configuration:
    """Structured description of the requested action.

    Attributes:
        action: Selected action, None until a handler has run.
        service_name: Name the service is registered under.
        display_name: Human-friendly service name.
        description: Service description shown by the service manager.
        services_depended_on: Services that must start first, in order.
        account_info: Account the service runs under.
        log_file: File the install/uninstall progress is written to.
        log_to_console: Whether progress is logged to the console.
        show_call_stack: Whether failures are logged with a traceback.
        allow_interact_with_desktop: Whether a LocalSystem service may
            interact with the desktop.
    """

    action: ConfigurationAction | None = None
    service_name: str = ""
    display_name: str = ""
    description: str = ""
    services_depended_on: list[str] = field(default_factory=lambda: [])
    account_info: AccountInfo = field(default_factory=AccountInfo)
    log_file: str | None = None
    log_to_console: bool | None = None
    show_call_stack: bool | None = None
    allow_interact_with_desktop: bool = False
