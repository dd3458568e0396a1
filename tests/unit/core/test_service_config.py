"""Unit tests for service definition loading."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from servicectl.core.service_config import (
    ServiceConfigNotFoundError,
    ServiceConfigParseError,
    ServiceConfigValidationError,
    find_service_config,
    load_service_definition,
)
from servicectl.models.recovery import RecoveryAction
from servicectl.models.service import StartMode

VALID_CONFIG = """
[service]
name = "worker"
display_name = "Worker"
description = "Background worker"
start_mode = "manual"
depends_on = ["Tcpip", "Afd"]
executable = "C:/apps/worker.exe"
arguments = ["--port", "8080"]

[recovery]
first_failure = "restart_the_service"
second_failure = "restart_the_computer"
minutes_to_restart_service = 2
reboot_message = "Rebooting"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Valid service definition file."""
    path = tmp_path / "service.toml"
    path.write_text(VALID_CONFIG)
    return path


class TestLoadServiceDefinition:
    """Tests for load_service_definition."""

    def test_loads_valid_file(self, config_file: Path) -> None:
        """All sections are parsed."""
        definition = load_service_definition(config_file)

        assert definition.service.name == "worker"
        assert definition.service.start_mode == StartMode.MANUAL
        assert definition.service.arguments == ["--port", "8080"]
        assert definition.service.stop_timeout_seconds == 30.0
        assert definition.recovery is not None
        assert definition.recovery.second_failure == RecoveryAction.RESTART_THE_COMPUTER

    def test_to_service_info(self, config_file: Path) -> None:
        """The definition converts to a ServiceInfo with recovery options."""
        service = load_service_definition(config_file).to_service_info()

        assert service.service_name == "worker"
        assert service.display_name == "Worker"
        assert service.services_depended_on == ("Tcpip", "Afd")
        assert service.recovery_options is not None
        assert service.recovery_options.minutes_to_restart_service == 2

    def test_minimal_file(self, tmp_path: Path) -> None:
        """Only name and executable are required."""
        path = tmp_path / "service.toml"
        path.write_text('[service]\nname = "worker"\nexecutable = "worker.exe"\n')

        definition = load_service_definition(path)

        assert definition.recovery is None
        assert definition.recovery_options() is None
        assert definition.to_service_info().display_name == "worker"

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ServiceConfigNotFoundError."""
        with pytest.raises(ServiceConfigNotFoundError):
            load_service_definition(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Malformed TOML raises ServiceConfigParseError."""
        path = tmp_path / "service.toml"
        path.write_text("[service\nname = ")

        with pytest.raises(ServiceConfigParseError, match="Invalid TOML"):
            load_service_definition(path)

    def test_missing_executable(self, tmp_path: Path) -> None:
        """The executable is required."""
        path = tmp_path / "service.toml"
        path.write_text('[service]\nname = "worker"\n')

        with pytest.raises(ServiceConfigValidationError):
            load_service_definition(path)

    @pytest.mark.parametrize("name", ["", "my service", "a/b"])
    def test_invalid_service_name(self, tmp_path: Path, name: str) -> None:
        """Service names are restricted to a safe character set."""
        path = tmp_path / "service.toml"
        path.write_text(f'[service]\nname = "{name}"\nexecutable = "worker.exe"\n')

        with pytest.raises(ServiceConfigValidationError):
            load_service_definition(path)

    def test_unknown_key(self, tmp_path: Path) -> None:
        """Unknown keys are rejected."""
        path = tmp_path / "service.toml"
        path.write_text('[service]\nname = "worker"\nexecutable = "w.exe"\nuser = "root"\n')

        with pytest.raises(ServiceConfigValidationError):
            load_service_definition(path)

    def test_invalid_recovery_rejected(self, tmp_path: Path) -> None:
        """Recovery options breaking a rule are rejected at load time."""
        path = tmp_path / "service.toml"
        path.write_text(
            '[service]\nname = "worker"\nexecutable = "w.exe"\n\n'
            '[recovery]\ncommand_to_launch_on_failure = "notify.exe"\n'
        )

        with pytest.raises(ServiceConfigValidationError, match="command_to_launch_on_failure"):
            load_service_definition(path)


class TestFindServiceConfig:
    """Tests for find_service_config."""

    def test_env_override(self, config_file: Path) -> None:
        """SERVICECTL_CONFIG points at the file directly."""
        with patch.dict(os.environ, {"SERVICECTL_CONFIG": str(config_file)}):
            assert find_service_config() == config_file

    def test_next_to_assembly(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """The executable's directory is searched."""
        app_dir = tmp_path / "apps"
        app_dir.mkdir()
        (app_dir / "service.toml").write_text(VALID_CONFIG)
        monkeypatch.delenv("SERVICECTL_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        monkeypatch.chdir(tmp_path)

        result = find_service_config(str(app_dir / "worker.exe"))

        assert result == app_dir / "service.toml"

    def test_not_found_lists_candidates(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The error lists every searched location."""
        monkeypatch.delenv("SERVICECTL_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ServiceConfigNotFoundError, match="searched"):
            find_service_config()
