"""Loftsman constants.

This module centralizes the magic strings used for ship records,
helm invocations and cluster labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ShipStatus(str, Enum):
    """Status values stored in a ship record's `status` key."""

    ACTIVE = "active"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    CRASHED = "crashed"
    AVASTED = "avasted"


@dataclass(frozen=True)
class LoftsmanConstants:
    """Constants for ship records and helm releases.

    All attributes are class-level and immutable.
    """

    # Kubernetes identifiers
    DEFAULT_NAMESPACE: str = "loftsman"
    CONFIGMAP_NAME_TEMPLATE: str = "loftsman-{name}"
    MANAGED_BY_LABEL: str = "app.kubernetes.io/managed-by"
    MANAGED_BY_VALUE: str = "loftsman"

    # Ship record data keys
    STATUS_KEY: str = "status"
    MANIFEST_KEY: str = "manifest.yaml"
    LOG_KEY: str = "loftsman.log"

    # Helm
    HELM_BINARY: str = "helm"
    HELM_REQUIRED_MAJOR: str = "v3"
    FAILED_RELEASE_STATUS: str = "failed"
    CHART_NAME_VALUE: str = "global.chart.name"
    CHART_VERSION_VALUE: str = "global.chart.version"

    # Chart repositories
    REPO_INDEX_FILE: str = "index.yaml"
    PACKAGED_CHART_SUFFIX: str = ".tgz"

    # Avast confirmation
    AVAST_CONFIRMATION: str = "yes"

    def configmap_name(self, manifest_name: str) -> str:
        """Return the ship record name for a manifest."""
        return self.CONFIGMAP_NAME_TEMPLATE.format(name=manifest_name)


DEFAULT_CONSTANTS = LoftsmanConstants()
