"""Data types for shell command results."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "CommandResult",
    "ReleaseStatus",
]


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass
class ReleaseStatus:
    """Minimal view of `helm status --output yaml`.

    Attributes:
        status: Release status (deployed, failed, pending-install, ...)
        revision: Release revision number, starting at 1
    """

    status: str
    revision: int

