"""Tests for Helm release, status and repository commands."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from loftsman.cli.deployment.shell_commands import ShellCommands
from loftsman.cli.deployment.shell_commands.helm import HelmCommands
from loftsman.cli.deployment.shell_commands.types import CommandResult
from loftsman.exceptions import CommandError

STATUS_YAML = """\
name: cray-service
namespace: services
version: 1
info:
  status: failed
  description: Release "cray-service" failed
"""


class TestHelmUpgradeInstall:
    """Tests for helm upgrade --install."""

    @pytest.fixture
    def mock_runner(self) -> MagicMock:
        """Create a mock command runner."""
        runner = MagicMock()
        runner.run.return_value = CommandResult(
            success=True, stdout="Release has been upgraded.", stderr="", returncode=0
        )
        return runner

    @pytest.fixture
    def helm_commands(self, mock_runner: MagicMock) -> HelmCommands:
        """Create HelmCommands instance with mock runner."""
        return HelmCommands(mock_runner)

    def test_upgrade_install_arguments(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """The chart name and version are injected as global values."""
        output = helm_commands.upgrade_install(
            "cray-service",
            "/charts/cray-service-1.2.3.tgz",
            "services",
            chart_name="cray-service",
            chart_version="1.2.3",
        )

        assert output == "Release has been upgraded."
        cmd = mock_runner.run.call_args[0][0]
        assert cmd == [
            "helm",
            "upgrade",
            "--install",
            "cray-service",
            "/charts/cray-service-1.2.3.tgz",
            "--namespace",
            "services",
            "--create-namespace",
            "--set",
            "global.chart.name=cray-service",
            "--set",
            "global.chart.version=1.2.3",
        ]

    def test_upgrade_install_optional_flags(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.upgrade_install(
            "ui",
            "secure/cray-ui",
            "web",
            chart_name="cray-ui",
            chart_version="0.4.0",
            timeout="10m",
            version="0.4.0",
            values_file=Path("/tmp/cray-ui-values.yaml"),
        )

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[-6:] == [
            "--timeout",
            "10m",
            "--version",
            "0.4.0",
            "-f",
            "/tmp/cray-ui-values.yaml",
        ]

    def test_failure_raises_command_error(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=False, stdout="", stderr="Error: timed out", returncode=1
        )

        with pytest.raises(CommandError) as excinfo:
            helm_commands.upgrade_install(
                "x", "x.tgz", "ns", chart_name="x", chart_version="1"
            )

        assert excinfo.value.returncode == 1
        assert "Error: timed out" in str(excinfo.value)

    def test_connection_flags(self, mock_runner: MagicMock) -> None:
        helm = HelmCommands(
            mock_runner,
            binary="/usr/local/bin/helm",
            kubeconfig="/etc/kube/config",
            kube_context="staging",
        )

        helm.uninstall("cray-service", "services")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:5] == [
            "/usr/local/bin/helm",
            "--kubeconfig",
            "/etc/kube/config",
            "--kube-context",
            "staging",
        ]
        assert cmd[5:] == [
            "uninstall",
            "cray-service",
            "--namespace",
            "services",
            "--no-hooks",
        ]


class TestHelmReleaseStatus:
    """Tests for helm status parsing."""

    @pytest.fixture
    def mock_runner(self) -> MagicMock:
        return MagicMock()

    def test_parses_status_and_revision(self, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(success=True, stdout=STATUS_YAML)

        status = HelmCommands(mock_runner).release_status("cray-service", "services")

        assert status.status == "failed"
        assert status.revision == 1
        cmd = mock_runner.run.call_args[0][0]
        assert cmd[-2:] == ["--output", "yaml"]

    def test_missing_release(self, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(
            success=False, stderr="Error: release: not found", returncode=1
        )

        with pytest.raises(CommandError):
            HelmCommands(mock_runner).release_status("nope", "services")

    def test_unparseable_output(self, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True, stdout="version: not-a-number\n"
        )

        with pytest.raises(CommandError):
            HelmCommands(mock_runner).release_status("x", "ns")


class TestHelmClient:
    """Tests for helm client checks."""

    @pytest.fixture
    def mock_runner(self) -> MagicMock:
        return MagicMock()

    def test_require_v3(self, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True, stdout='version.BuildInfo{Version:"v3.14.2"}'
        )

        assert "v3.14.2" in HelmCommands(mock_runner).require_v3()

    def test_require_v3_rejects_v2(self, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True, stdout='Client: &version.Version{SemVer:"v2.16.1"}'
        )

        with pytest.raises(CommandError):
            HelmCommands(mock_runner).require_v3()


class TestHelmRepositories:
    """Tests for chart repository registration."""

    @pytest.fixture
    def mock_runner(self) -> MagicMock:
        runner = MagicMock()
        runner.run.return_value = CommandResult(success=True)
        return runner

    def test_repo_add_redacts_password(self, mock_runner: MagicMock) -> None:
        HelmCommands(mock_runner).repo_add(
            "secure", "https://charts.example.com", username="admin", password="s3cret"
        )

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[1:] == [
            "repo",
            "add",
            "secure",
            "https://charts.example.com",
            "--username",
            "admin",
            "--password",
            "s3cret",
        ]
        assert mock_runner.run.call_args.kwargs["redact"] == ["s3cret"]

    def test_repo_add_failure_hides_password(self, mock_runner: MagicMock) -> None:
        mock_runner.run.return_value = CommandResult(
            success=False, stderr="Error: 401", returncode=1
        )

        with pytest.raises(CommandError) as excinfo:
            HelmCommands(mock_runner).repo_add(
                "secure", "https://charts.example.com", username="a", password="s3cret"
            )

        assert "s3cret" not in excinfo.value.message

    def test_repo_remove(self, mock_runner: MagicMock) -> None:
        HelmCommands(mock_runner).repo_remove("secure")

        assert mock_runner.run.call_args[0][0] == ["helm", "repo", "rm", "secure"]


class TestShellCommands:
    def test_wires_helm_connection_settings(self) -> None:
        commands = ShellCommands(helm_binary="helm3", kube_context="prod")

        assert commands.helm.base_cmd() == ["helm3", "--kube-context", "prod"]
        assert commands.runner is not None
