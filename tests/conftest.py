"""Shared fixtures for the loftsman test suite."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from loguru import logger

from loftsman.cli.deployment.shell_commands import HelmCommands
from loftsman.cli.deployment.shell_commands.types import ReleaseStatus
from loftsman.exceptions import CommandError
from loftsman.infra.k8s.controller import KubernetesControllerSync

MANIFEST = """\
apiVersion: manifests/v1beta1
metadata:
  name: core-services
spec:
  charts:
  - name: cray-service
    namespace: services
    version: 1.2.3
  - name: cray-ui
    namespace: services
    version: 0.4.0
    values:
      replicas: 2
"""


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep LOFTSMAN_* variables from the host out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("LOFTSMAN_"):
            monkeypatch.delenv(key)
    yield
    logger.configure(extra={})


@pytest.fixture
def manifest_text() -> str:
    return MANIFEST


@pytest.fixture
def manifest_file(tmp_path: Path, manifest_text: str) -> Path:
    path = tmp_path / "manifest.yaml"
    path.write_text(manifest_text)
    return path


@pytest.fixture
def mock_k8s() -> MagicMock:
    """Cluster client with no ship records and no secrets."""
    k8s = MagicMock(spec=KubernetesControllerSync)
    k8s.find_configmap.return_value = None
    k8s.initialize_configmap.return_value = {}
    k8s.patch_configmap.return_value = {}
    return k8s


@pytest.fixture
def mock_helm() -> MagicMock:
    """Helm commands where no release exists yet and installs succeed."""
    helm = MagicMock(spec=HelmCommands)
    helm.release_status.side_effect = CommandError("Error: release: not found")
    helm.upgrade_install.return_value = "Release has been upgraded. Happy Helming!"
    helm.repo_add.return_value = ""
    helm.repo_remove.return_value = ""
    return helm


@pytest.fixture
def failed_first_release() -> ReleaseStatus:
    return ReleaseStatus(status="failed", revision=1)


@pytest.fixture
def charts_dir(tmp_path: Path) -> Path:
    """Directory of packaged charts matching the sample manifest."""
    path = tmp_path / "charts"
    path.mkdir()
    for package in (
        "cray-service-1.2.3.tgz",
        "cray-service-1.2.2.tgz",
        "cray-ui-0.4.0.tgz",
    ):
        (path / package).write_bytes(b"")
    return path
