"""Exceptions raised by loftsman.

Every error the CLI reports derives from `LoftsmanError`, which carries a
short message plus optional details rendered in a panel.

The per-chart errors (`ChartReleaseError` subclasses) are never raised out of
the release loop: they are captured into `ReleaseError` records so the loop
can move on to the next chart.
"""

from __future__ import annotations

__all__ = [
    "LoftsmanError",
    "SettingsError",
    "CommandError",
    "ClusterError",
    "ManifestError",
    "MalformedInputError",
    "UnsupportedVersionError",
    "SchemaInvalidError",
    "ChartReleaseError",
    "SourceNotFoundError",
    "CleanupFailedError",
    "SourceResolutionFailedError",
    "ArtifactNotFoundError",
    "InstallFailedError",
    "ShipInProgressError",
    "NoActiveShipError",
    "ShipFailedError",
    "ShipCrashedError",
]


class LoftsmanError(Exception):
    """Base exception for all loftsman operations."""

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class SettingsError(LoftsmanError):
    """Raised when CLI settings are missing or inconsistent."""


class CommandError(LoftsmanError):
    """Raised when a helm subprocess exits with a non-zero code."""

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 1,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message, details=stderr or stdout or None)

    def __str__(self) -> str:
        parts = [self.message]
        if self.stderr:
            parts.append(self.stderr)
        elif self.stdout:
            parts.append(self.stdout)
        return ": ".join(parts)


class ClusterError(LoftsmanError):
    """Raised when a Kubernetes API call fails (after any retries)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# Manifest document errors (fatal to the operation)
# =============================================================================


class ManifestError(LoftsmanError):
    """Base class for manifest document errors."""


class MalformedInputError(ManifestError):
    """Raised when the manifest text cannot be parsed."""


class UnsupportedVersionError(ManifestError):
    """Raised when the manifest apiVersion has no registered schema."""

    def __init__(self, api_version: str | None) -> None:
        self.api_version = api_version
        super().__init__(f"the manifest apiVersion is not supported: {api_version}")


class SchemaInvalidError(ManifestError):
    """Raised when a parsed manifest violates its JSON schema."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        numbered = " ".join(
            f"({index}) {violation}"
            for index, violation in enumerate(violations, start=1)
        )
        super().__init__(
            f"manifest validation errors: {numbered}",
            details="\n".join(
                f"{index}. {violation}"
                for index, violation in enumerate(violations, start=1)
            ),
        )


# =============================================================================
# Per-chart release errors (recorded, the loop continues)
# =============================================================================


class ChartReleaseError(LoftsmanError):
    """Base class for errors scoped to a single chart release."""


class SourceNotFoundError(ChartReleaseError):
    """Raised when a chart names a source missing from spec.sources.charts."""


class CleanupFailedError(ChartReleaseError):
    """Raised when a failed first release could not be uninstalled."""


class SourceResolutionFailedError(ChartReleaseError):
    """Raised when a chart source could not be turned into a usable location."""


class ArtifactNotFoundError(ChartReleaseError):
    """Raised when the declared chart version is not available from the source."""


class InstallFailedError(ChartReleaseError):
    """Raised when helm upgrade --install fails."""


# =============================================================================
# Ship lock protocol and ship outcome
# =============================================================================


class ShipInProgressError(LoftsmanError):
    """Raised when another ship for the same manifest is still active."""

    def __init__(self, manifest_name: str) -> None:
        self.manifest_name = manifest_name
        super().__init__(
            f"There's another loftsman ship in progress for manifest {manifest_name} "
            "in this cluster, please wait and try again in a bit, or use "
            "`loftsman avast` to cancel it"
        )


class NoActiveShipError(LoftsmanError):
    """Raised by avast when no active ship record exists."""

    def __init__(self, manifest_name: str) -> None:
        self.manifest_name = manifest_name
        super().__init__(
            f"Couldn't find an active ship in progress for manifest: {manifest_name}"
        )


class ShipFailedError(LoftsmanError):
    """Raised when one or more charts did not release successfully."""


class ShipCrashedError(LoftsmanError):
    """Raised when an unexpected fault interrupted the release loop."""
