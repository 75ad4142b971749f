"""Shell command abstractions for helm operations.

This package wraps the helm CLI used during a ship:

- runner: captured subprocess execution
- helm: release, status and repository commands

Usage:
    from loftsman.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands(helm_binary="helm")
    commands.helm.require_v3()
"""

from pathlib import Path

from .helm import HelmCommands
from .runner import CommandRunner
from .types import CommandResult, ReleaseStatus


class ShellCommands:
    """Unified interface for shell command operations.

    Attributes:
        helm: Helm-related commands

    Example:
        >>> commands = ShellCommands(kube_context="staging")
        >>> commands.helm.release_status("my-release", "default")
    """

    def __init__(
        self,
        cwd: Path | None = None,
        *,
        helm_binary: str = "helm",
        kubeconfig: str | None = None,
        kube_context: str | None = None,
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            cwd: Working directory for commands (process cwd if None)
            helm_binary: Helm binary to execute
            kubeconfig: Optional kubeconfig path for helm
            kube_context: Optional kubeconfig context for helm
        """
        self._runner = CommandRunner(cwd)
        self.helm = HelmCommands(
            self._runner,
            binary=helm_binary,
            kubeconfig=kubeconfig,
            kube_context=kube_context,
        )

    @property
    def runner(self) -> CommandRunner:
        """Get the underlying command runner."""
        return self._runner


__all__ = [
    "ShellCommands",
    "CommandRunner",
    "HelmCommands",
    "CommandResult",
    "ReleaseStatus",
]
