"""Manifest validation and creation.

A manifest's `apiVersion` selects which registered schema version parses,
validates and releases it.
"""

from __future__ import annotations

from typing import Any

import yaml  # type: ignore[import-untyped]
from jsonschema import Draft7Validator
from pydantic import ValidationError

from loftsman.exceptions import (
    MalformedInputError,
    SchemaInvalidError,
    UnsupportedVersionError,
)

from .base import ManifestVersion, VersionedManifest
from .v1beta1 import VERSION as V1BETA1

MANIFEST_VERSIONS: dict[str, ManifestVersion] = {
    V1BETA1.api_version: V1BETA1,
}

LATEST_VERSION = V1BETA1.api_version


def get_version(raw: str) -> str | None:
    """Read only the `apiVersion` of a manifest.

    Raises:
        MalformedInputError: If the text isn't a YAML mapping
    """
    try:
        data: Any = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise MalformedInputError(
            "could not parse the manifest as yaml to retrieve the apiVersion",
            details=str(e),
        ) from e
    if data is None:
        return None
    if not isinstance(data, dict):
        raise MalformedInputError(
            "could not parse the manifest as yaml to retrieve the apiVersion",
            details=f"expected a mapping at the document root, got {type(data).__name__}",
        )
    api_version = data.get("apiVersion")
    return api_version if isinstance(api_version, str) else None


def lookup_version(api_version: str | None) -> ManifestVersion:
    if api_version is None or api_version not in MANIFEST_VERSIONS:
        raise UnsupportedVersionError(api_version)
    return MANIFEST_VERSIONS[api_version]


def schema_violations(schema: dict[str, Any], document: dict[str, Any]) -> list[str]:
    """Validate a document against a JSON schema.

    Returns:
        Violations ordered by document location, empty when valid
    """
    errors = sorted(
        Draft7Validator(schema).iter_errors(document),
        key=lambda e: ([str(part) for part in e.absolute_path], e.message),
    )
    violations: list[str] = []
    for error in errors:
        location = ".".join(str(part) for part in error.absolute_path) or "(root)"
        violation = f"{location}: {error.message}"
        if violation not in violations:
            violations.append(violation)
    return violations


def validate(raw: str) -> VersionedManifest:
    """Parse and validate manifest text.

    Args:
        raw: Manifest YAML text

    Returns:
        The loaded manifest, with manifest-level defaults applied

    Raises:
        MalformedInputError: If the text can't be parsed
        UnsupportedVersionError: If the apiVersion isn't registered
        SchemaInvalidError: If the document violates its schema
    """
    version = lookup_version(get_version(raw))

    try:
        manifest = version.model.parse(raw)
    except (yaml.YAMLError, ValidationError) as e:
        raise MalformedInputError(
            f"could not parse the manifest as {version.api_version} yaml: {e}"
        ) from e

    violations = schema_violations(version.schema, manifest.schema_document())
    if violations:
        raise SchemaInvalidError(violations)
    return manifest


def create(chart_names: list[str], api_version: str = LATEST_VERSION) -> str:
    """Render a baseline manifest listing the given charts.

    The charts get empty namespace and version fields to fill in.
    """
    version = lookup_version(api_version)
    return yaml.safe_dump(
        version.model.skeleton(chart_names),
        sort_keys=False,
        default_flow_style=False,
    )


def parse_chart_names(chart_names: str) -> list[str]:
    """Split a comma-separated chart list, dropping blanks."""
    return [name.strip() for name in chart_names.split(",") if name.strip()]
