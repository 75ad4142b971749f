"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass

import typer

from loftsman.cli.deployment.shell_commands import ShellCommands
from loftsman.cli.shared.console import CLIConsole, console
from loftsman.infra.constants import DEFAULT_CONSTANTS, LoftsmanConstants
from loftsman.infra.k8s import get_k8s_controller_sync
from loftsman.infra.k8s.controller import KubernetesControllerSync
from loftsman.runtime.config.settings import Settings


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    settings: Settings
    commands: ShellCommands
    k8s_controller: KubernetesControllerSync
    constants: LoftsmanConstants


def build_cli_context(settings: Settings | None = None) -> CLIContext:
    """Build a fresh CLIContext.

    Nothing here talks to the cluster yet; connections are made by the
    commands that need them.
    """
    settings = settings or Settings.from_env()

    return CLIContext(
        console=console,
        settings=settings,
        commands=ShellCommands(
            helm_binary=settings.helm_binary,
            kubeconfig=settings.kubeconfig,
            kube_context=settings.kube_context,
        ),
        k8s_controller=get_k8s_controller_sync(
            settings.kubeconfig, settings.kube_context
        ),
        constants=DEFAULT_CONSTANTS,
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    if ctx is not None and isinstance(ctx.obj, CLIContext):
        return ctx.obj
    return build_cli_context()
