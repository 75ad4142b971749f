"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
the helm command module.
"""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult


class CommandRunner:
    """Low-level command executor with consistent result handling.

    Output is always captured (never streamed) and trimmed of surrounding
    whitespace.
    """

    def __init__(self, cwd: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            cwd: Working directory for commands (process cwd if None)
        """
        self.cwd = cwd

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        redact: Sequence[str] = (),
    ) -> CommandResult:
        """Execute a command and return a structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to the runner's cwd)
            redact: Argument values (e.g. passwords) to mask in log output

        Returns:
            CommandResult with success status, trimmed output, and return code
        """
        shown = ["*****" if arg in redact else arg for arg in cmd]
        logger.debug(f"Running command: {shlex.join(shown)}")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=cwd or self.cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(success=False, stderr=str(e), returncode=127)
        return CommandResult(
            success=result.returncode == 0,
            stdout=(result.stdout or "").strip(),
            stderr=(result.stderr or "").strip(),
            returncode=result.returncode,
        )
