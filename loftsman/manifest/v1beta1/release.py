"""Release loop for manifests/v1beta1.

Charts are released one at a time in declaration order. A chart that fails
is recorded as a `ReleaseError` and the loop moves on; any other exception
escapes to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import yaml  # type: ignore[import-untyped]
from loguru import logger

from loftsman.exceptions import (
    ArtifactNotFoundError,
    ChartReleaseError,
    CleanupFailedError,
    CommandError,
    InstallFailedError,
)
from loftsman.infra.constants import DEFAULT_CONSTANTS

from ..base import ChartsSourceConfig, ReleaseContext, ReleaseError
from .sources import (
    ChartSourceResolver,
    RepositoryRegistry,
    available_chart_versions,
)

if TYPE_CHECKING:
    from loguru import Logger

    from .model import Chart, Manifest


class ChartReleaser:
    """Releases the charts of one manifest with helm."""

    def __init__(self, manifest: Manifest, context: ReleaseContext) -> None:
        self.manifest = manifest
        self.context = context
        self.helm = context.helm
        self.resolver = ChartSourceResolver(
            manifest.chart_sources, context.default_source, context.kubernetes
        )
        self.repositories = RepositoryRegistry(context.helm)

    def release_all(self) -> list[ReleaseError]:
        """Release every chart, then remove repositories added along the way."""
        errors: list[ReleaseError] = []
        try:
            for chart in self.manifest.charts:
                log = self._chart_logger(chart)
                try:
                    self.release_chart(chart, log)
                except ChartReleaseError as e:
                    errors.append(
                        ReleaseError(
                            chart=chart.name or "",
                            version=chart.version or "",
                            namespace=chart.namespace or "",
                            error=e,
                        )
                    )
                    log.error(str(e).strip())
        finally:
            self.repositories.remove_all()
        return errors

    @staticmethod
    def _chart_logger(chart: Chart) -> Logger:
        return logger.bind(
            chart=chart.name or "",
            version=chart.version or "",
            namespace=chart.namespace or "",
        )

    def release_chart(self, chart: Chart, log: Logger) -> None:
        """Release a single chart.

        Raises:
            ChartReleaseError: If the chart could not be released
        """
        name = chart.name or ""
        version = chart.version or ""
        namespace = chart.namespace or ""
        release_name = chart.effective_release_name

        removed_failed_release = self._remove_failed_first_release(
            release_name, namespace, log
        )

        if self.context.ship_log is not None:
            self.context.ship_log.sub_header(f"Releasing {name} v{version}")
        if removed_failed_release:
            log.info("Removed previously-failed first release successfully")

        source = self.resolver.resolve(chart)
        chart_ref = self._find_chart_location(source, name, version)

        repo_version = None
        if source.requires_registration:
            repo_name = self.repositories.ensure(source)
            chart_ref = f"{repo_name}/{name}"
            repo_version = version

        values_file = self._write_values(chart, log)

        log.info(
            f"Running helm install/upgrade for release {release_name} "
            f"with chart {chart_ref}"
        )
        try:
            output = self.helm.upgrade_install(
                release_name,
                chart_ref,
                namespace,
                chart_name=name,
                chart_version=version,
                timeout=chart.timeout,
                version=repo_version,
                values_file=values_file,
            )
        except CommandError as e:
            raise InstallFailedError(
                f"Error releasing chart {name} v{version}: {e}"
            ) from e
        if output.strip():
            log.info(output)

    def _remove_failed_first_release(
        self, release_name: str, namespace: str, log: Logger
    ) -> bool:
        """Uninstall a release whose first install failed.

        helm can't upgrade a release that never deployed, so it has to go.

        Returns:
            True if a failed release was removed
        """
        try:
            status = self.helm.release_status(release_name, namespace)
        except CommandError:
            return False
        if (
            status.status != DEFAULT_CONSTANTS.FAILED_RELEASE_STATUS
            or status.revision != 1
        ):
            return False

        log.info(
            f"Attempting to remove previously-failed first release for {release_name}"
        )
        try:
            self.helm.uninstall(release_name, namespace)
        except CommandError as e:
            raise CleanupFailedError(
                "Error attempting to remove previously-failed first release "
                f"for {release_name}: {e}"
            ) from e
        return True

    def _find_chart_location(
        self, source: ChartsSourceConfig, name: str, version: str
    ) -> str:
        try:
            versions = available_chart_versions(
                source, name, client=self.context.http_client
            )
        except (OSError, httpx.HTTPError, yaml.YAMLError, ValueError) as e:
            raise ArtifactNotFoundError(
                f"Error determining available versions for the chart {name}: {e}"
            ) from e

        for available in versions:
            if available.version == version:
                return available.location
        raise ArtifactNotFoundError(
            f"Unable to find chart {name} v{version} in the configured charts location"
        )

    def _write_values(self, chart: Chart, log: Logger) -> Path | None:
        if chart.values is None:
            return None
        content = yaml.safe_dump(chart.values, default_flow_style=False)
        path = self.context.temp_directory / f"{chart.name}-values.yaml"
        try:
            path.write_text(content)
        except OSError as e:
            raise InstallFailedError(
                f"Error writing helm values for chart {chart.name}: {e}"
            ) from e
        log.info(f"Found value overrides for chart, applying: \n{content}")
        return path
