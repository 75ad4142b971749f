"""Helm command abstractions.

This module provides the helm operations a ship needs: client version
checks, release install/upgrade/uninstall, release status queries and
chart repository registration.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml  # type: ignore[import-untyped]

from ....exceptions import CommandError
from ....infra.constants import DEFAULT_CONSTANTS
from .types import ReleaseStatus

if TYPE_CHECKING:
    from .runner import CommandRunner


class HelmCommands:
    """Helm-related shell commands.

    Every invocation is prefixed with the configured helm binary and, when
    set, the `--kubeconfig`/`--kube-context` flags so helm talks to the same
    cluster as the ship record store.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        binary: str = DEFAULT_CONSTANTS.HELM_BINARY,
        kubeconfig: str | None = None,
        kube_context: str | None = None,
    ) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
            binary: Helm binary to execute
            kubeconfig: Optional kubeconfig path passed to every command
            kube_context: Optional kubeconfig context passed to every command
        """
        self._runner = runner
        self.binary = binary
        self.kubeconfig = kubeconfig
        self.kube_context = kube_context

    def base_cmd(self) -> list[str]:
        """Return the helm binary plus cluster connection flags."""
        cmd = [self.binary]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        if self.kube_context:
            cmd.extend(["--kube-context", self.kube_context])
        return cmd

    def exec(self, args: Sequence[str], *, redact: Sequence[str] = ()) -> str:
        """Run a helm sub-command and return its trimmed stdout.

        Args:
            args: Sub-command and arguments, e.g. ["status", "foo"]
            redact: Argument values to mask in logs and error messages

        Returns:
            Captured standard output

        Raises:
            CommandError: If helm exits with a non-zero code
        """
        cmd = [*self.base_cmd(), *args]
        result = self._runner.run(cmd, redact=redact)
        if not result.success:
            shown = shlex.join("*****" if arg in redact else arg for arg in cmd)
            raise CommandError(
                f"Command '{shown}' failed with return code {result.returncode}",
                stdout=result.stdout,
                stderr=result.stderr,
                returncode=result.returncode,
            )
        return result.stdout

    # =========================================================================
    # Client
    # =========================================================================

    def client_version(self) -> str:
        """Return the output of `helm version --client`."""
        return self.exec(["version", "--client"])

    def require_v3(self) -> str:
        """Make sure the helm client is a v3 binary.

        Returns:
            The reported client version

        Raises:
            CommandError: If helm can't run or reports another major version
        """
        version = self.client_version()
        if DEFAULT_CONSTANTS.HELM_REQUIRED_MAJOR not in version:
            raise CommandError(
                "Helm v3 client binary is required to run loftsman, "
                f"found: {version}"
            )
        return version

    # =========================================================================
    # Release Management
    # =========================================================================

    def upgrade_install(
        self,
        release_name: str,
        chart_ref: str,
        namespace: str,
        *,
        chart_name: str,
        chart_version: str,
        timeout: str | None = None,
        version: str | None = None,
        values_file: Path | None = None,
    ) -> str:
        """Deploy or upgrade a Helm release.

        Uses `helm upgrade --install` so the same command installs a new
        release or upgrades an existing one. The chart name and version are
        injected as `global.chart.*` values.

        Args:
            release_name: Name for the Helm release
            chart_ref: Chart path, URL, or `<repo>/<chart>` reference
            namespace: Kubernetes namespace, created if absent
            chart_name: Chart name injected as global.chart.name
            chart_version: Chart version injected as global.chart.version
            timeout: Optional helm --timeout value (e.g. "10m")
            version: Optional --version, needed for repository references
            values_file: Optional values.yaml override file

        Returns:
            Captured helm output

        Raises:
            CommandError: If the install/upgrade fails
        """
        cmd = [
            "upgrade",
            "--install",
            release_name,
            chart_ref,
            "--namespace",
            namespace,
            "--create-namespace",
            "--set",
            f"{DEFAULT_CONSTANTS.CHART_NAME_VALUE}={chart_name}",
            "--set",
            f"{DEFAULT_CONSTANTS.CHART_VERSION_VALUE}={chart_version}",
        ]
        if timeout:
            cmd.extend(["--timeout", timeout])
        if version:
            cmd.extend(["--version", version])
        if values_file is not None:
            cmd.extend(["-f", str(values_file)])
        return self.exec(cmd)

    def uninstall(self, release_name: str, namespace: str) -> str:
        """Uninstall a Helm release without running hooks.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace

        Returns:
            Captured helm output
        """
        return self.exec(
            ["uninstall", release_name, "--namespace", namespace, "--no-hooks"]
        )

    # =========================================================================
    # Status Queries
    # =========================================================================

    def release_status(self, release_name: str, namespace: str) -> ReleaseStatus:
        """Get the status and revision of a release.

        Args:
            release_name: Name of the release
            namespace: Kubernetes namespace

        Returns:
            ReleaseStatus parsed from `helm status --output yaml`

        Raises:
            CommandError: If the release doesn't exist or the output can't be parsed
        """
        output = self.exec(
            ["status", release_name, "--namespace", namespace, "--output", "yaml"]
        )
        try:
            data: Any = yaml.safe_load(output) or {}
            info = data.get("info") or {}
            return ReleaseStatus(
                status=str(info.get("status", "")),
                revision=int(data.get("version", 0)),
            )
        except (yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
            raise CommandError(
                f"error parsing release status info for {release_name}: {e}"
            ) from e

    # =========================================================================
    # Repositories
    # =========================================================================

    def repo_add(
        self,
        name: str,
        url: str,
        *,
        username: str | None = None,
        password: str | None = None,
    ) -> str:
        """Register a chart repository.

        Args:
            name: Local repository name
            url: Repository base URL
            username: Optional basic auth username
            password: Optional basic auth password (masked in logs)
        """
        cmd = ["repo", "add", name, url]
        if username:
            cmd.extend(["--username", username])
        if password:
            cmd.extend(["--password", password])
        return self.exec(cmd, redact=[password] if password else ())

    def repo_remove(self, name: str) -> str:
        """Remove a chart repository registration."""
        return self.exec(["repo", "rm", name])
