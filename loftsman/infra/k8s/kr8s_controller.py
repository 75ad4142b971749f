"""Kr8s-based implementation of KubernetesController.

Uses the kr8s library for native async Kubernetes operations.
"""

from __future__ import annotations

import base64
from typing import Any, TypeVar

import kr8s
from kr8s.asyncio.objects import ConfigMap, Namespace, Secret
from loguru import logger

from ...exceptions import ClusterError
from ..constants import DEFAULT_CONSTANTS, LoftsmanConstants
from .controller import KubernetesController
from .retry import DEFAULT_BACKOFF, Backoff, error_status, retry_on_error

T = TypeVar("T")


class Kr8sController(KubernetesController):
    """Kubernetes controller using the kr8s library.

    Note: The kr8s API client is NOT cached because it's tied to the event loop
    that was running when created, and `run_sync()` creates a fresh loop for
    every call.
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        *,
        backoff: Backoff = DEFAULT_BACKOFF,
        constants: LoftsmanConstants | None = None,
    ) -> None:
        """Initialize the kr8s controller.

        Args:
            kubeconfig: Path to a kubeconfig file (system default if None)
            context: kubeconfig context to use (current-context if None)
            backoff: Retry backoff for transient API errors
            constants: Optional loftsman constants
        """
        self.kubeconfig = kubeconfig
        self.context = context
        self.backoff = backoff
        self.constants = constants or DEFAULT_CONSTANTS

    async def _get_api(self) -> Any:  # Returns kr8s._api.Api
        """Create a kr8s API client bound to the current event loop."""
        return await kr8s.asyncio.api(kubeconfig=self.kubeconfig, context=self.context)

    async def _call(self, description: str, func: Any) -> T:
        """Run `func` under the retry policy, mapping failures to ClusterError."""
        try:
            return await retry_on_error(func, backoff=self.backoff)
        except ClusterError:
            raise
        except Exception as e:
            status_code, _ = error_status(e)
            raise ClusterError(f"{description}: {e}", status_code=status_code) from e

    def _common_labels(self) -> dict[str, str]:
        return {self.constants.MANAGED_BY_LABEL: self.constants.MANAGED_BY_VALUE}

    # =========================================================================
    # Connectivity
    # =========================================================================

    async def verify_connection(self) -> None:
        """Make sure the configured cluster is reachable by listing namespaces."""

        async def _list() -> None:
            api = await self._get_api()
            async for _ in Namespace.list(api=api):
                break

        try:
            await _list()
        except Exception as e:
            raise ClusterError(
                "Error attempting to list namespaces in the cluster, are you sure "
                f"you have your kubeconfig connected to an active cluster? {e}"
            ) from e

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    async def ensure_namespace(self, name: str) -> None:
        """Create a namespace, treating "already exists" as success."""

        async def _ensure() -> None:
            api = await self._get_api()
            ns = Namespace({"metadata": {"name": name}}, api=api)
            try:
                await ns.create()
            except kr8s.ServerError as e:
                _, reason = error_status(e)
                if reason == "AlreadyExists":
                    return
                raise

        await self._call(f"Error ensuring namespace {name}", _ensure)

    # =========================================================================
    # ConfigMap Operations
    # =========================================================================

    async def find_configmap(
        self,
        name: str,
        namespace: str,
        with_key: str,
        with_value: str,
    ) -> dict[str, str] | None:
        """Find a configmap by name whose data holds a particular key/value."""

        async def _find() -> dict[str, str] | None:
            api = await self._get_api()
            async for configmap in ConfigMap.list(namespace=namespace, api=api):
                if configmap.name != name:
                    continue
                data = dict(configmap.raw.get("data") or {})
                if data.get(with_key) == with_value:
                    return data
            return None

        return await self._call(
            f"Error searching for configmap {name} in namespace {namespace}", _find
        )

    async def initialize_configmap(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
    ) -> dict[str, str]:
        """Create the configmap, or reset an existing one.

        Resetting writes `data` and drops the log of the previous run.
        """

        async def _initialize() -> dict[str, str]:
            api = await self._get_api()
            try:
                configmap = await ConfigMap.get(name, namespace=namespace, api=api)
            except kr8s.NotFoundError:
                configmap = ConfigMap(
                    {
                        "metadata": {
                            "name": name,
                            "namespace": namespace,
                            "labels": self._common_labels(),
                        },
                        "data": dict(data),
                    },
                    api=api,
                )
                await configmap.create()
                logger.debug(f"Created configmap {name} in namespace {namespace}")
                return dict(configmap.raw.get("data") or {})

            patch: dict[str, Any] = {
                "data": {**data, self.constants.LOG_KEY: None},
            }
            await configmap.patch(patch, type="merge")
            logger.debug(f"Reset configmap {name} in namespace {namespace}")
            return dict(configmap.raw.get("data") or {})

        return await self._call(
            f"Error initializing configmap {name} in namespace {namespace}",
            _initialize,
        )

    async def patch_configmap(
        self,
        name: str,
        namespace: str,
        data: dict[str, str],
    ) -> dict[str, str]:
        """Merge `data` into an existing configmap."""

        async def _patch() -> dict[str, str]:
            api = await self._get_api()
            configmap = await ConfigMap.get(name, namespace=namespace, api=api)
            await configmap.patch({"data": dict(data)})
            return dict(configmap.raw.get("data") or {})

        return await self._call(
            f"Error patching configmap {name} in namespace {namespace}", _patch
        )

    # =========================================================================
    # Secret Operations
    # =========================================================================

    async def get_secret_key_value(
        self,
        secret_name: str,
        namespace: str,
        data_key: str,
    ) -> str:
        """Read one decoded, whitespace-trimmed value from a secret."""

        async def _get() -> str:
            api = await self._get_api()
            secret = await Secret.get(secret_name, namespace=namespace, api=api)
            encoded = (secret.raw.get("data") or {}).get(data_key)
            if not encoded:
                return ""
            return base64.b64decode(encoded).decode("utf-8").strip()

        return await self._call(
            f"Error reading key {data_key} from secret {secret_name} "
            f"in namespace {namespace}",
            _get,
        )
