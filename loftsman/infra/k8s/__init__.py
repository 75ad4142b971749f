"""Kubernetes infrastructure abstraction layer.

This module provides the cluster operations loftsman relies on: namespace
creation, ship record configmaps and chart repository credential secrets.

Example:
    from loftsman.infra.k8s import get_k8s_controller_sync

    controller = get_k8s_controller_sync()
    controller.ensure_namespace("loftsman")
"""

from .controller import KubernetesController, KubernetesControllerSync
from .helpers import get_k8s_controller, get_k8s_controller_sync
from .kr8s_controller import Kr8sController
from .retry import DEFAULT_BACKOFF, Backoff, is_retryable, retry_on_error
from .utils import run_sync

__all__ = [
    # Controller classes
    "KubernetesController",
    "KubernetesControllerSync",
    "Kr8sController",
    # Factories
    "get_k8s_controller",
    "get_k8s_controller_sync",
    # Retry policy
    "Backoff",
    "DEFAULT_BACKOFF",
    "is_retryable",
    "retry_on_error",
    # Utilities
    "run_sync",
]
