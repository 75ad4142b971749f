"""Cluster-side record of ship runs.

Each manifest has one configmap, `loftsman-<manifest name>`, in the loftsman
namespace. While a ship runs its `status` is `active`, which acts as an
advisory lock: a second ship for the same manifest refuses to start. When
the run ends the status, the manifest text and the run's log are written
back.
"""

from __future__ import annotations

from loguru import logger

from loftsman.exceptions import (
    ClusterError,
    LoftsmanError,
    NoActiveShipError,
    ShipInProgressError,
)
from loftsman.infra.constants import DEFAULT_CONSTANTS, LoftsmanConstants, ShipStatus
from loftsman.infra.k8s import KubernetesControllerSync


class ShipRecord:
    """Ship record configmap for one manifest."""

    def __init__(
        self,
        kubernetes: KubernetesControllerSync,
        namespace: str,
        manifest_name: str,
        *,
        constants: LoftsmanConstants = DEFAULT_CONSTANTS,
    ) -> None:
        self.kubernetes = kubernetes
        self.namespace = namespace
        self.manifest_name = manifest_name
        self.constants = constants
        self.data: dict[str, str] = {}

    @property
    def name(self) -> str:
        return self.constants.configmap_name(self.manifest_name)

    def ensure_namespace(self) -> None:
        logger.info(f"Ensuring that the {self.namespace} namespace exists")
        try:
            self.kubernetes.ensure_namespace(self.namespace)
        except ClusterError as e:
            raise ClusterError(
                f"Error ensuring that the {self.namespace} namespace exists: {e}",
                e.status_code,
            ) from e

    def find_active(self) -> dict[str, str] | None:
        """Return the record's data if a ship is active, None otherwise."""
        try:
            return self.kubernetes.find_configmap(
                self.name,
                self.namespace,
                self.constants.STATUS_KEY,
                ShipStatus.ACTIVE.value,
            )
        except ClusterError as e:
            raise ClusterError(
                "Error determining if another loftsman ship is in progress for "
                f"manifest {self.manifest_name}: {e}",
                e.status_code,
            ) from e

    def check_not_active(self) -> None:
        """Raise ShipInProgressError if another ship holds the record."""
        if self.find_active() is not None:
            raise ShipInProgressError(self.manifest_name)

    def initialize(self) -> None:
        """Mark the record active for this run."""
        self.data = {self.constants.STATUS_KEY: ShipStatus.ACTIVE.value}
        try:
            self.kubernetes.initialize_configmap(
                self.name, self.namespace, dict(self.data)
            )
        except ClusterError as e:
            raise ClusterError(
                f"Error creating ship configmap {self.name} in namespace "
                f"{self.namespace}: {e}",
                e.status_code,
            ) from e

    def record_result(
        self, status: ShipStatus, *, manifest_text: str, log_text: str
    ) -> None:
        """Write the outcome of a run.

        A failed write is logged and otherwise ignored.
        """
        logger.info(
            f"Ship status: {status.value}. Recording status, manifest, and log data "
            f"to configmap {self.name} in namespace {self.namespace}"
        )
        self.data = {
            **self.data,
            self.constants.MANIFEST_KEY: manifest_text,
            self.constants.LOG_KEY: log_text,
            self.constants.STATUS_KEY: status.value,
        }
        try:
            self.kubernetes.patch_configmap(self.name, self.namespace, dict(self.data))
        except LoftsmanError as e:
            logger.error(
                f"Error patching configmap {self.name} with result, manifest, and "
                f"log data to the {self.namespace} namespace: {e}"
            )

    def avast(self) -> None:
        """Force an active record to `avasted`.

        Raises:
            NoActiveShipError: If no ship is active for the manifest
        """
        active = self.find_active()
        if active is None:
            raise NoActiveShipError(self.manifest_name)
        avasted = {**active, self.constants.STATUS_KEY: ShipStatus.AVASTED.value}
        try:
            self.kubernetes.patch_configmap(self.name, self.namespace, avasted)
        except LoftsmanError as e:
            logger.error(
                f"Error patching configmap {self.name} with avasted status to the "
                f"{self.namespace} namespace: {e}"
            )
