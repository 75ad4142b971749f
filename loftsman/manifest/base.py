"""Types shared by every manifest schema version."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, Self

import yaml  # type: ignore[import-untyped]

from loftsman.exceptions import ChartReleaseError

if TYPE_CHECKING:
    import httpx

    from loftsman.cli.deployment.shell_commands import HelmCommands
    from loftsman.infra.k8s import KubernetesControllerSync
    from loftsman.runtime.config.settings import ChartsSourceSettings
    from loftsman.runtime.logging import ShipLog


_NUMERIC_TAGS = ("tag:yaml.org,2002:int", "tag:yaml.org,2002:float")


class TextScalarLoader(yaml.SafeLoader):
    """SafeLoader that keeps numeric scalars as their source text.

    Versions like `1.10` must not turn into the float `1.1`.
    """


TextScalarLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _NUMERIC_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_text_scalars(raw: str) -> Any:
    """Parse YAML text, keeping int and float scalars as strings.

    Raises:
        yaml.YAMLError: If the text isn't valid YAML
    """
    return yaml.load(raw, Loader=TextScalarLoader)  # noqa: S506


@dataclass(frozen=True)
class ReleaseError:
    """One failed chart release.

    Attributes:
        chart: Chart name
        version: Declared chart version
        namespace: Target namespace
        error: What went wrong, one of the ChartReleaseError subclasses
    """

    chart: str
    version: str
    namespace: str
    error: ChartReleaseError

    @property
    def message(self) -> str:
        return str(self.error).strip()


@dataclass(frozen=True)
class ChartVersion:
    """A single version of a chart available from a chart source.

    Attributes:
        version: Chart version string as published
        location: Local .tgz path or absolute download URL
    """

    version: str
    location: str


@dataclass
class ChartsSourceConfig:
    """Where to find chart packages for a release.

    Exactly one of `repo` or `path` is set for a usable source.

    Attributes:
        repo: Chart repository base URL
        repo_name: Name used when registering the repository with helm
        repo_username: Optional basic auth username
        repo_password: Optional basic auth password
        path: Local directory of packaged .tgz charts
    """

    repo: str | None = None
    repo_name: str | None = None
    repo_username: str | None = None
    repo_password: str | None = None
    path: Path | None = None

    @classmethod
    def from_settings(cls, settings: ChartsSourceSettings) -> ChartsSourceConfig:
        return cls(
            repo=settings.repo,
            repo_username=settings.repo_username,
            repo_password=settings.repo_password,
            path=settings.path,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.repo) or self.path is not None

    @property
    def requires_registration(self) -> bool:
        """Whether helm must know the repository to fetch from it."""
        return bool(self.repo and self.repo_username)

    @property
    def registration_name(self) -> str:
        """Repository name for helm: the source name or the md5 hex of the URL."""
        if self.repo_name:
            return self.repo_name
        return hashlib.md5((self.repo or "").encode()).hexdigest()


@dataclass
class ReleaseContext:
    """Collaborators a manifest needs to release its charts.

    Attributes:
        kubernetes: Cluster client, used to read repository credentials
        helm: Helm commands used to query, remove and install releases
        default_source: Chart source used by charts that name no source
        temp_directory: Scratch directory for values override files
        ship_log: Optional ship log, used for per-chart section headers
        http_client: Optional HTTP client for chart repository indexes
    """

    kubernetes: KubernetesControllerSync
    helm: HelmCommands
    default_source: ChartsSourceConfig
    temp_directory: Path
    ship_log: ShipLog | None = None
    http_client: httpx.Client | None = field(default=None, repr=False)


class VersionedManifest(Protocol):
    """Interface every manifest schema version implements."""

    api_version: str

    @property
    def name(self) -> str: ...

    @classmethod
    def parse(cls, raw: str) -> Self: ...

    @classmethod
    def skeleton(cls, chart_names: list[str]) -> dict[str, Any]: ...

    def schema_document(self) -> dict[str, Any]: ...

    def release(self, context: ReleaseContext) -> list[ReleaseError]: ...


@dataclass(frozen=True)
class ManifestVersion:
    """A registered manifest schema version.

    Attributes:
        api_version: The `apiVersion` string selecting this version
        model: Manifest class that parses, validates and releases documents
        schema: JSON schema the parsed document must satisfy
    """

    api_version: str
    model: type[VersionedManifest]
    schema: dict[str, Any]
