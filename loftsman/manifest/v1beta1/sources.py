"""Chart source resolution and chart version discovery."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger

from loftsman.exceptions import (
    ClusterError,
    CommandError,
    SourceNotFoundError,
    SourceResolutionFailedError,
)
from loftsman.infra.constants import DEFAULT_CONSTANTS

from ..base import ChartsSourceConfig, ChartVersion, load_text_scalars
from .model import Chart, ChartSource, ChartSourceType, CredentialsSecret

if TYPE_CHECKING:
    from loftsman.cli.deployment.shell_commands import HelmCommands
    from loftsman.infra.k8s import KubernetesControllerSync

INDEX_TIMEOUT_SECONDS = 30.0


class ChartSourceResolver:
    """Resolves the chart source for each chart of a manifest."""

    def __init__(
        self,
        sources: list[ChartSource],
        default: ChartsSourceConfig,
        kubernetes: KubernetesControllerSync,
    ) -> None:
        self.sources = sources
        self.default = default
        self.kubernetes = kubernetes

    def _find(self, name: str) -> ChartSource:
        for source in self.sources:
            if source.name == name:
                return source
        raise SourceNotFoundError(
            f"Source name not found in spec.sources.charts[]: {name}"
        )

    def _secret_value(
        self,
        source: ChartSource,
        secret: CredentialsSecret,
        key: str | None,
        what: str,
    ) -> str:
        try:
            return self.kubernetes.get_secret_key_value(
                secret.name or "", secret.namespace or "", key or ""
            )
        except ClusterError as e:
            raise SourceResolutionFailedError(
                f"Error getting chart source {what} from secret {secret.name} "
                f"for spec.sources.charts[] name = {source.name}: {e}"
            ) from e

    def resolve(self, chart: Chart) -> ChartsSourceConfig:
        """Resolve the source a chart is fetched from.

        A chart naming a source uses that entry of spec.sources.charts;
        otherwise the process-wide default source applies.

        Raises:
            SourceNotFoundError: If the named source isn't declared
            SourceResolutionFailedError: If credentials can't be read or no
                source is configured at all
        """
        if not chart.source:
            config = self.default
        else:
            source = self._find(chart.source)
            config = ChartsSourceConfig()
            if source.type == ChartSourceType.REPO:
                config.repo = source.location
                config.repo_name = source.name
                if source.credentials_secret is not None:
                    secret = source.credentials_secret
                    config.repo_username = self._secret_value(
                        source, secret, secret.username_key, "username"
                    )
                    config.repo_password = self._secret_value(
                        source, secret, secret.password_key, "password"
                    )
            elif source.type == ChartSourceType.DIRECTORY:
                config.path = Path(source.location or "")

        if not config.is_configured:
            raise SourceResolutionFailedError(
                f"No chart source configured for chart {chart.name}, name a source "
                "from spec.sources.charts[] or use --charts-repo/--charts-path"
            )
        if config.repo:
            try:
                httpx.URL(config.repo)
            except httpx.InvalidURL as e:
                raise SourceResolutionFailedError(
                    f"Invalid chart repo URL {config.repo} for chart {chart.name}: {e}"
                ) from e
        return config


# =============================================================================
# Version discovery
# =============================================================================


def _directory_versions(path: Path, chart_name: str) -> list[ChartVersion]:
    prefix = f"{chart_name}-"
    suffix = DEFAULT_CONSTANTS.PACKAGED_CHART_SUFFIX
    versions = []
    for entry in sorted(path.iterdir()):
        if not entry.is_file():
            continue
        if not entry.name.startswith(prefix) or not entry.name.endswith(suffix):
            continue
        version = entry.name[len(prefix) : -len(suffix)]
        versions.append(ChartVersion(version=version, location=str(entry)))
    return versions


def _absolute_url(repo: str, url: str) -> str:
    try:
        absolute = httpx.URL(url).is_absolute_url
    except httpx.InvalidURL as e:
        raise ValueError(f"invalid chart url {url} in repo index: {e}") from e
    if absolute:
        return url
    return f"{repo.rstrip('/')}/{url.lstrip('/')}"


def _repo_versions(
    source: ChartsSourceConfig, chart_name: str, client: httpx.Client
) -> list[ChartVersion]:
    repo = source.repo or ""
    index_url = f"{repo.rstrip('/')}/{DEFAULT_CONSTANTS.REPO_INDEX_FILE}"
    auth = None
    if source.repo_username and source.repo_password:
        auth = httpx.BasicAuth(source.repo_username, source.repo_password)

    logger.debug(f"Fetching chart repo index {index_url}")
    response = client.get(index_url, auth=auth)
    response.raise_for_status()

    index: Any = load_text_scalars(response.text) or {}
    if not isinstance(index, dict):
        raise ValueError(f"chart repo index {index_url} is not a mapping")
    entries = index.get("entries") or {}
    if not isinstance(entries, dict):
        raise ValueError(f"chart repo index {index_url} has no entries mapping")
    chart_entries = entries.get(chart_name) or []
    if not isinstance(chart_entries, list):
        raise ValueError(
            f"chart repo index {index_url} entry {chart_name} is not a list"
        )

    versions = []
    for entry in chart_entries:
        if not isinstance(entry, dict):
            raise ValueError(
                f"chart repo index {index_url} has a malformed {chart_name} entry"
            )
        urls = entry.get("urls") or []
        if not isinstance(urls, list):
            raise ValueError(
                f"chart repo index {index_url} has malformed urls for "
                f"{chart_name} {entry.get('version')}"
            )
        if not urls:
            continue
        versions.append(
            ChartVersion(
                version=str(entry.get("version", "")),
                location=_absolute_url(repo, str(urls[0])),
            )
        )
    return versions


def available_chart_versions(
    source: ChartsSourceConfig,
    chart_name: str,
    *,
    client: httpx.Client | None = None,
) -> list[ChartVersion]:
    """List the versions of a chart available from a source.

    Directory sources are scanned for `<chart>-<version>.tgz` packages;
    repository sources are read from their `index.yaml`.

    Args:
        source: Resolved chart source
        chart_name: Chart to look up
        client: Optional HTTP client, a short-lived one is used otherwise

    Returns:
        Available versions with their package locations

    Raises:
        OSError: If the chart directory can't be read
        httpx.HTTPError: If the repository index can't be fetched
        yaml.YAMLError: If the repository index isn't valid YAML
        ValueError: If the repository index doesn't have the expected shape
    """
    if source.path is not None:
        return _directory_versions(source.path, chart_name)
    if client is not None:
        return _repo_versions(source, chart_name, client)
    with httpx.Client(timeout=INDEX_TIMEOUT_SECONDS, follow_redirects=True) as owned:
        return _repo_versions(source, chart_name, owned)


# =============================================================================
# Repository registration
# =============================================================================


class RepositoryRegistry:
    """Tracks chart repositories registered with helm during one release run."""

    def __init__(self, helm: HelmCommands) -> None:
        self.helm = helm
        self.added: list[str] = []

    def ensure(self, source: ChartsSourceConfig) -> str:
        """Register a repository once per run.

        Returns:
            The repository name to prefix chart references with

        Raises:
            SourceResolutionFailedError: If `helm repo add` fails
        """
        name = source.registration_name
        if name in self.added:
            return name
        try:
            self.helm.repo_add(
                name,
                source.repo or "",
                username=source.repo_username,
                password=source.repo_password,
            )
        except CommandError as e:
            raise SourceResolutionFailedError(
                f"Error adding secure chart repo {source.repo}: {e}"
            ) from e
        self.added.append(name)
        return name

    def remove_all(self) -> None:
        """Remove every repository added by `ensure`, ignoring failures."""
        for name in self.added:
            try:
                self.helm.repo_remove(name)
            except CommandError as e:
                logger.debug(f"Ignoring failure removing chart repo {name}: {e}")
        self.added.clear()
