"""Runtime settings for a single loftsman CLI run."""

from __future__ import annotations

import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from loftsman.exceptions import SettingsError
from loftsman.infra.constants import DEFAULT_CONSTANTS

ENV_PREFIX = "LOFTSMAN_"


class ChartsSourceSettings(BaseModel):
    """Process-wide default chart source, used when a chart names no source."""

    repo: str | None = None
    repo_username: str | None = None
    repo_password: str | None = None
    path: Path | None = None


class Settings(BaseModel):
    """All dynamic settings and data used by loftsman operations."""

    model_config = ConfigDict(validate_assignment=True)

    run_id: str = Field(default_factory=lambda: str(int(time.time())))
    namespace: str = DEFAULT_CONSTANTS.DEFAULT_NAMESPACE
    kubeconfig: str | None = None
    kube_context: str | None = None
    helm_binary: str = DEFAULT_CONSTANTS.HELM_BINARY
    json_log_path: Path | None = None
    manifest_path: Path | None = None
    manifest_name: str | None = None
    chart_names: str = ""
    charts_source: ChartsSourceSettings = Field(default_factory=ChartsSourceSettings)
    temp_directory: Path | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from LOFTSMAN_* environment variables.

        Explicit overrides (typically CLI options) win over the environment;
        overrides that are None are ignored.

        Args:
            **overrides: Field values, with `charts_*` keys mapped into the
                chart source settings

        Returns:
            A populated Settings instance
        """
        values: dict[str, Any] = {}
        source: dict[str, Any] = {}
        source_fields = {f"charts_{name}" for name in ChartsSourceSettings.model_fields}

        env_values = {
            key[len(ENV_PREFIX) :].lower(): value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX) and value != ""
        }
        explicit = {key: value for key, value in overrides.items() if value is not None}

        for key, value in {**env_values, **explicit}.items():
            if key in source_fields:
                source[key[len("charts_") :]] = value
            elif key in cls.model_fields:
                values[key] = value
            else:
                logger.debug(f"Ignoring unknown setting {key}")

        return cls(**values, charts_source=ChartsSourceSettings(**source))

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_charts_source(self) -> None:
        """Make sure the default chart source settings are consistent.

        Raises:
            SettingsError: If both a repo and a path are set, or the path is missing
        """
        source = self.charts_source
        if source.repo and source.path:
            raise SettingsError(
                "both charts-repo and charts-path are set, you should use one or the other"
            )
        if source.path is not None and not source.path.exists():
            raise SettingsError(f"charts-path {source.path} not found")

    def validate_manifest_path(self) -> Path:
        """Make sure the manifest path points at an existing file.

        Returns:
            The manifest path

        Raises:
            SettingsError: If no path is set or the file doesn't exist
        """
        if self.manifest_path is None:
            raise SettingsError("a manifest path is required")
        if not self.manifest_path.exists():
            raise SettingsError(f"manifest path {self.manifest_path} not found")
        return self.manifest_path

    # =========================================================================
    # Temp directory
    # =========================================================================

    def create_temp_directory(self) -> Path:
        """Create a scratch directory owned by this run alone."""
        path = Path(tempfile.mkdtemp(prefix=f"loftsman-{self.run_id}-"))
        self.temp_directory = path
        return path

    def cleanup_temp_directory(self) -> None:
        """Remove the per-run scratch directory, if one was created."""
        if self.temp_directory is None:
            return
        try:
            shutil.rmtree(self.temp_directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                f"Couldn't remove temp directory {self.temp_directory}: {e}"
            )
        self.temp_directory = None
