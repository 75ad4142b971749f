"""Tests for CLI context dependency injection."""

from unittest.mock import Mock, patch

import pytest
import typer

from loftsman.cli.context import CLIContext, build_cli_context, get_cli_context
from loftsman.infra.constants import DEFAULT_CONSTANTS
from loftsman.runtime.config.settings import Settings


def _context() -> CLIContext:
    return CLIContext(
        console=Mock(),
        settings=Settings(),
        commands=Mock(),
        k8s_controller=Mock(),
        constants=Mock(),
    )


def test_cli_context_is_immutable():
    """Test that CLIContext is frozen/immutable."""
    ctx = _context()

    with pytest.raises(AttributeError):
        ctx.console = Mock()  # type: ignore[misc]


@patch("loftsman.cli.context.get_k8s_controller_sync")
def test_build_cli_context_creates_all_dependencies(mock_k8s_controller):
    """Test that build_cli_context creates all required dependencies."""
    mock_k8s_controller.return_value = Mock()

    ctx = build_cli_context(Settings())

    assert ctx.console is not None
    assert ctx.commands is not None
    assert ctx.k8s_controller is mock_k8s_controller.return_value
    assert ctx.constants is DEFAULT_CONSTANTS


@patch("loftsman.cli.context.get_k8s_controller_sync")
@patch("loftsman.cli.context.ShellCommands")
def test_build_cli_context_passes_cluster_settings(
    mock_shell_commands, mock_k8s_controller
):
    """Test that kubeconfig, context and helm binary reach the dependencies."""
    settings = Settings(
        kubeconfig="/tmp/kubeconfig",
        kube_context="staging",
        helm_binary="/opt/helm",
    )

    ctx = build_cli_context(settings)

    assert ctx.settings is settings
    mock_shell_commands.assert_called_once_with(
        helm_binary="/opt/helm",
        kubeconfig="/tmp/kubeconfig",
        kube_context="staging",
    )
    mock_k8s_controller.assert_called_once_with("/tmp/kubeconfig", "staging")


def test_get_cli_context_from_typer_context():
    """Test that get_cli_context retrieves from Typer context."""
    mock_ctx_obj = _context()

    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = mock_ctx_obj

    assert get_cli_context(typer_ctx) is mock_ctx_obj


def test_get_cli_context_with_invalid_obj_falls_back():
    """Test that get_cli_context falls back when ctx.obj is not CLIContext."""
    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = "invalid"

    with patch("loftsman.cli.context.build_cli_context") as mock_build:
        mock_build.return_value = Mock(spec=CLIContext)

        get_cli_context(typer_ctx)

        mock_build.assert_called_once()


def test_get_cli_context_without_context_builds_one():
    """Test that get_cli_context builds a context when none is given."""
    with patch("loftsman.cli.context.build_cli_context") as mock_build:
        mock_build.return_value = Mock(spec=CLIContext)

        result = get_cli_context(None)

    assert result is mock_build.return_value
    mock_build.assert_called_once_with()
