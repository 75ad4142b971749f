"""Abstract Kubernetes controller interface.

Defines the cluster operations loftsman needs to keep ship records and to
read chart repository credentials. Implementations are async; use
`KubernetesControllerSync` from synchronous code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .utils import run_sync

# =============================================================================
# Abstract Controller
# =============================================================================


class KubernetesController(ABC):
    """Abstract base class for Kubernetes operations.

    Every operation retries transient API failures before raising
    `ClusterError`.

    Example:
        from loftsman.infra.k8s import Kr8sController, run_sync

        controller = Kr8sController()
        run_sync(controller.ensure_namespace("loftsman"))
    """

    # =========================================================================
    # Connectivity
    # =========================================================================

    @abstractmethod
    async def verify_connection(self) -> None:
        """Make sure the configured cluster is reachable.

        Raises:
            ClusterError: If the cluster API cannot be reached
        """
        ...

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    @abstractmethod
    async def ensure_namespace(self, name: str) -> None:
        """Create a namespace, doing nothing if it already exists.

        Args:
            name: Namespace to create
        """
        ...

    # =========================================================================
    # ConfigMap Operations
    # =========================================================================

    @abstractmethod
    async def find_configmap(
        self,
        name: str,
        namespace: str,
        with_key: str,
        with_value: str,
    ) -> dict[str, str] | None:
        """Find a configmap by name whose data holds a particular key/value.

        Args:
            name: ConfigMap name
            namespace: Namespace to search
            with_key: Data key that must be present
            with_value: Value the data key must equal

        Returns:
            The configmap data, or None if no matching configmap exists
        """
        ...

    @abstractmethod
    async def initialize_configmap(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
    ) -> dict[str, str]:
        """Create a configmap, or reset an existing one to hold `data`.

        Args:
            name: ConfigMap name
            namespace: Namespace of the configmap
            data: Data to store

        Returns:
            The resulting configmap data
        """
        ...

    @abstractmethod
    async def patch_configmap(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
    ) -> dict[str, str]:
        """Merge `data` into an existing configmap.

        Args:
            name: ConfigMap name
            namespace: Namespace of the configmap
            data: Data keys to write

        Returns:
            The resulting configmap data
        """
        ...

    # =========================================================================
    # Secret Operations
    # =========================================================================

    @abstractmethod
    async def get_secret_key_value(
        self,
        secret_name: str,
        namespace: str,
        data_key: str,
    ) -> str:
        """Read one decoded, whitespace-trimmed value from a secret.

        Args:
            secret_name: Secret name
            namespace: Namespace of the secret
            data_key: Key within the secret data

        Returns:
            The decoded value, or an empty string if the key is absent
        """
        ...


class KubernetesControllerSync:
    """Blocking facade over a `KubernetesController`.

    The release loop is strictly sequential, so every cluster call blocks
    until the underlying coroutine completes.
    """

    def __init__(self, controller: KubernetesController) -> None:
        self._controller = controller

    @property
    def controller(self) -> KubernetesController:
        return self._controller

    def verify_connection(self) -> None:
        run_sync(self._controller.verify_connection())

    def ensure_namespace(self, name: str) -> None:
        run_sync(self._controller.ensure_namespace(name))

    def find_configmap(
        self, name: str, namespace: str, with_key: str, with_value: str
    ) -> dict[str, str] | None:
        return run_sync(
            self._controller.find_configmap(name, namespace, with_key, with_value)
        )

    def initialize_configmap(
        self, name: str, namespace: str, data: dict[str, str]
    ) -> dict[str, str]:
        return run_sync(self._controller.initialize_configmap(name, namespace, data))

    def patch_configmap(
        self, name: str, namespace: str, data: dict[str, str]
    ) -> dict[str, str]:
        return run_sync(self._controller.patch_configmap(name, namespace, data))

    def get_secret_key_value(
        self, secret_name: str, namespace: str, data_key: str
    ) -> str:
        return run_sync(
            self._controller.get_secret_key_value(secret_name, namespace, data_key)
        )
