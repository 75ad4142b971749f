"""Loftsman manifests.

Usage:
    from loftsman.manifest import validate

    manifest = validate(Path("manifest.yaml").read_text())
    errors = manifest.release(context)
"""

from .base import (
    ChartsSourceConfig,
    ChartVersion,
    ManifestVersion,
    ReleaseContext,
    ReleaseError,
    VersionedManifest,
)
from .validator import (
    LATEST_VERSION,
    MANIFEST_VERSIONS,
    create,
    get_version,
    parse_chart_names,
    schema_violations,
    validate,
)

__all__ = [
    "ChartVersion",
    "ChartsSourceConfig",
    "LATEST_VERSION",
    "MANIFEST_VERSIONS",
    "ManifestVersion",
    "ReleaseContext",
    "ReleaseError",
    "VersionedManifest",
    "create",
    "get_version",
    "parse_chart_names",
    "schema_violations",
    "validate",
]
