"""Unit tests for ServiceApplication.

Drives full invocations against the in-memory service manager and fake
service instances from conftest.
"""

import signal
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from servicectl.core.application import ServiceApplication
from servicectl.core.service_config import ServiceConfigNotFoundError, ServiceDefinition
from servicectl.instances.command import CommandServiceInstance
from servicectl.managers.base import ServiceManagerError
from servicectl.models.configuration import AccountType, Configuration, ConfigurationAction
from servicectl.models.recovery import ServiceRecoveryOptions

ASSEMBLY = "C:/apps/worker.exe"


class Recorder:
    """Configurer hook that keeps the configuration it was given."""

    def __init__(self) -> None:
        self.configuration: Configuration | None = None

    def __call__(self, configuration: Configuration) -> None:
        self.configuration = configuration


@pytest.fixture
def recorder() -> Recorder:
    """Configurer capturing the final configuration."""
    return Recorder()


@pytest.fixture
def make_app(manager: Any, instance_factory: Any, recorder: Recorder) -> Any:
    """Build an application around a fake instance."""

    def factory(**instance_kwargs: Any) -> ServiceApplication:
        return ServiceApplication(
            lambda: instance_factory(**instance_kwargs),
            manager=manager,
            assembly_path=ASSEMBLY,
            configurer=recorder,
        )

    return factory


class TestParsing:
    """Tests for help and argument errors."""

    def test_help(self, manager: Any, capsys: pytest.CaptureFixture[str]) -> None:
        """Help prints usage and exits 0 without creating the instance."""
        factory = MagicMock()
        app = ServiceApplication(factory, manager=manager, assembly_path=ASSEMBLY)

        assert app.run(["/?"]) == 0

        factory.assert_not_called()
        assert "Usage:" in capsys.readouterr().out

    def test_errors(self, manager: Any, capsys: pytest.CaptureFixture[str]) -> None:
        """Argument errors print every message and exit 1."""
        factory = MagicMock()
        app = ServiceApplication(factory, manager=manager, assembly_path=ASSEMBLY)

        assert app.run(["-a", "uninstall", "-c", "user"]) == 1

        factory.assert_not_called()
        assert manager.calls == []
        assert "Argument 'credentials' is not valid in this context." in capsys.readouterr().err

    def test_service_config_error(self, manager: Any, capsys: pytest.CaptureFixture[str]) -> None:
        """A missing service definition is reported with exit 1."""

        def factory() -> Any:
            raise ServiceConfigNotFoundError("Service definition not found")

        app = ServiceApplication(factory, manager=manager, assembly_path=ASSEMBLY)

        assert app.run(["-a", "install"]) == 1
        assert "Service definition not found" in capsys.readouterr().err


class TestInstall:
    """Tests for the install action."""

    def test_install(self, make_app: Any, manager: Any, recorder: Recorder) -> None:
        """Install registers the instance's service under the configured account."""
        assert make_app().run(["-a", "install", "-c", "localService"]) == 0

        assert manager.calls == ["register:worker", "account:worker"]
        step = manager.services["worker"]
        assert step.display_name == "worker"
        assert step.description == "Test worker"
        assert step.services_depended_on == ("Tcpip",)
        assert step.binary_path == "C:/apps/worker.exe --action run"
        assert manager.accounts["worker"].account_type == AccountType.LOCAL_SERVICE

        assert recorder.configuration is not None
        assert recorder.configuration.action == ConfigurationAction.INSTALL
        assert recorder.configuration.service_name == "worker"

    def test_install_user_account(self, make_app: Any, manager: Any) -> None:
        """User credentials reach the account step."""
        args = ["-a", "install", "-c", "user", "-u", "svc", "-p", "s3cret"]

        assert make_app().run(args) == 0

        assert manager.accounts["worker"].username == "svc"
        assert manager.accounts["worker"].password == "s3cret"

    def test_install_with_recovery(
        self, make_app: Any, manager: Any, restart_options: ServiceRecoveryOptions
    ) -> None:
        """Recovery options from the instance are applied after the account."""
        assert make_app(recovery_options=restart_options).run(["-a", "install"]) == 0

        assert manager.calls[-1] == "recovery:worker"
        assert manager.recovery["worker"] == restart_options

    def test_invalid_recovery(self, make_app: Any, manager: Any) -> None:
        """Invalid recovery options fail before anything is registered."""
        options = ServiceRecoveryOptions(reboot_message="Going down")

        assert make_app(recovery_options=options).run(["-a", "install"]) == 1
        assert manager.calls == []

    def test_install_failure_rolls_back(
        self, make_app: Any, manager: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A failing step exits 1 and leaves nothing registered."""
        manager.fail_on["account:worker"] = ServiceManagerError("Access is denied.")

        assert make_app().run(["-a", "install"]) == 1

        assert manager.services == {}
        assert "Step 'configure account 'local_system'' failed" in capsys.readouterr().err

    def test_dry_run(
        self, instance_factory: Any, dry_run_manager: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A dry-run manager is reported and still walks every step."""
        app = ServiceApplication(instance_factory, manager=dry_run_manager, assembly_path=ASSEMBLY)

        assert app.run(["-a", "install"]) == 0

        output = capsys.readouterr().out
        assert "Dry run" in output
        assert "Service 'worker' installed (dry-run)" in output

    def test_manager_unavailable(self, make_app: Any, manager: Any) -> None:
        """Install fails cleanly when no service manager is available."""
        manager.available = False

        assert make_app().run(["-a", "install"]) == 1
        assert manager.calls == []

    def test_install_rejects_log_file(self, make_app: Any, manager: Any, tmp_path: Path) -> None:
        """Install does not accept the logging settings."""
        log_file = tmp_path / "install.log"

        assert make_app().run(["-a", "install", "-f", str(log_file)]) == 1
        assert manager.calls == []
        assert not log_file.exists()


class TestUninstall:
    """Tests for the uninstall action."""

    def test_log_file(self, make_app: Any, tmp_path: Path) -> None:
        """Uninstall progress is written to the requested log file."""
        log_file = tmp_path / "uninstall.log"
        make_app().run(["-a", "install"])

        assert make_app().run(["-a", "uninstall", "-l", "false", "-f", str(log_file)]) == 0

        assert "remove service 'worker'" in log_file.read_text(encoding="utf-8")

    def test_unopenable_log_file(self, make_app: Any, manager: Any, tmp_path: Path) -> None:
        """A log file that cannot be opened is reported before any change."""
        log_file = tmp_path / "missing" / "uninstall.log"

        assert make_app().run(["-a", "uninstall", "-f", str(log_file)]) == 1
        assert manager.calls == []

    def test_uninstall(self, make_app: Any, manager: Any) -> None:
        """Uninstall removes an installed service."""
        make_app().run(["-a", "install"])

        assert make_app().run(["-a", "uninstall"]) == 0
        assert manager.services == {}

    def test_uninstall_absent_service(self, make_app: Any, manager: Any) -> None:
        """Uninstalling a service that is not registered succeeds."""
        assert make_app().run(["-a", "uninstall"]) == 0
        assert manager.calls == ["unregister:worker"]


class TestRun:
    """Tests for the run and debug actions."""

    @pytest.mark.parametrize(("action", "supervised"), [("run", True), ("debug", False)])
    def test_dispatch(self, make_app: Any, action: str, supervised: bool) -> None:
        """run is supervised, debug runs attached to the console."""
        with patch("servicectl.core.application.run_service", return_value=0) as mock_run:
            assert make_app().run(["-a", action]) == 0

        assert mock_run.call_args.kwargs["supervised"] is supervised

    def test_exit_code_propagates(self, make_app: Any) -> None:
        """The hosted program's exit code becomes the process exit code."""
        assert make_app(exit_after=1, exit_code=4).run(["-a", "debug"]) == 4

    @pytest.mark.parametrize("action", ["run", "debug"])
    def test_program_cannot_start(
        self,
        manager: Any,
        tmp_path: Path,
        action: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A program that cannot be launched is reported with exit 1."""
        definition = ServiceDefinition.model_validate(
            {"service": {"name": "worker", "executable": str(tmp_path / "nope.exe")}}
        )
        app = ServiceApplication(
            lambda: CommandServiceInstance(definition), manager=manager, assembly_path=ASSEMBLY
        )
        before = signal.getsignal(signal.SIGINT)

        assert app.run(["-a", action]) == 1

        assert "Cannot start" in capsys.readouterr().err
        assert signal.getsignal(signal.SIGINT) is before
