"""manifests/v1beta1 document model.

Every field is optional at parse time: a missing field is kept as None and
dropped from the schema document, so the JSON schema (not the parser)
reports what's required. Numeric scalars are read as their source text,
except inside chart values, which keep their YAML types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Self

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field

from ..base import ReleaseContext, ReleaseError, load_text_scalars
from .schema import API_VERSION


def _restore_chart_values(data: Any, typed: Any) -> None:
    """Put the YAML-typed chart values back into a text-scalar parse."""
    try:
        charts = data["spec"]["charts"]
        typed_charts = typed["spec"]["charts"]
    except (KeyError, TypeError):
        return
    if not isinstance(charts, list) or not isinstance(typed_charts, list):
        return
    for chart, typed_chart in zip(charts, typed_charts, strict=False):
        if isinstance(chart, dict) and isinstance(typed_chart, dict):
            if "values" in chart:
                chart["values"] = typed_chart.get("values")


class ManifestModel(BaseModel):
    """Base config for manifest objects."""

    model_config = ConfigDict(extra="allow")


class CredentialsSecret(ManifestModel):
    """Secret holding basic auth credentials for a chart repository."""

    name: str | None = None
    namespace: str | None = None
    username_key: str | None = Field(default=None, alias="usernameKey")
    password_key: str | None = Field(default=None, alias="passwordKey")


class ChartSourceType(str, Enum):
    """Kinds of chart source."""

    DIRECTORY = "directory"
    REPO = "repo"


class ChartSource(ManifestModel):
    """A named chart source under spec.sources.charts."""

    type: str | None = None
    name: str | None = None
    location: str | None = None
    credentials_secret: CredentialsSecret | None = Field(
        default=None, alias="credentialsSecret"
    )


class Repo(ManifestModel):
    name: str | None = None
    url: str | None = None


class Sources(ManifestModel):
    charts: list[ChartSource] | None = None
    repos: list[Repo] | None = None


class All(ManifestModel):
    """Defaults applied to every chart."""

    timeout: str | None = None


class Chart(ManifestModel):
    """A single chart to release."""

    name: str | None = None
    source: str | None = None
    release_name: str | None = Field(default=None, alias="releaseName")
    namespace: str | None = None
    version: str | None = None
    values: dict[str, Any] | None = None
    timeout: str | None = None

    @property
    def effective_release_name(self) -> str:
        """Release name, defaulting to the chart name."""
        return self.release_name or self.name or ""


class Spec(ManifestModel):
    sources: Sources | None = None
    all: All | None = None
    charts: list[Chart] | None = None


class Metadata(ManifestModel):
    name: str | None = None
    labels: dict[str, Any] | None = None


class Manifest(ManifestModel):
    """A manifests/v1beta1 document."""

    api_version: str | None = Field(default=None, alias="apiVersion")
    metadata: Metadata | None = None
    spec: Spec | None = None

    @property
    def name(self) -> str:
        if self.metadata is None:
            return ""
        return self.metadata.name or ""

    @property
    def charts(self) -> list[Chart]:
        if self.spec is None:
            return []
        return self.spec.charts or []

    @property
    def chart_sources(self) -> list[ChartSource]:
        if self.spec is None or self.spec.sources is None:
            return []
        return self.spec.sources.charts or []

    @classmethod
    def parse(cls, raw: str) -> Self:
        """Build a manifest from YAML text and apply `spec.all` defaults.

        Raises:
            yaml.YAMLError: If the text isn't valid YAML
            pydantic.ValidationError: If a field has the wrong shape
        """
        data = load_text_scalars(raw)
        _restore_chart_values(data, yaml.safe_load(raw))
        manifest = cls.model_validate(data)
        manifest.apply_defaults()
        return manifest

    def apply_defaults(self) -> None:
        """Copy `spec.all.timeout` into charts that set no timeout."""
        if self.spec is None or self.spec.all is None or not self.spec.all.timeout:
            return
        for chart in self.charts:
            if not chart.timeout:
                chart.timeout = self.spec.all.timeout

    @classmethod
    def skeleton(cls, chart_names: list[str]) -> dict[str, Any]:
        """Baseline document listing the given charts with empty fields."""
        return {
            "apiVersion": API_VERSION,
            "metadata": {"name": ""},
            "spec": {
                "charts": [
                    {"name": name, "namespace": "", "version": ""}
                    for name in chart_names
                ]
            },
        }

    def schema_document(self) -> dict[str, Any]:
        """The manifest as plain data for JSON schema validation.

        Chart values are opaque to the schema and left out.
        """
        exclude: dict[str, Any] | None = None
        if self.spec is not None and self.spec.charts:
            exclude = {"spec": {"charts": {"__all__": {"values"}}}}
        return self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude=exclude
        )

    def release(self, context: ReleaseContext) -> list[ReleaseError]:
        """Release every chart in declaration order.

        Returns:
            One ReleaseError per chart that failed, empty on full success
        """
        from .release import ChartReleaser

        return ChartReleaser(self, context).release_all()
