"""Helpers shared by the command modules."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from loftsman.cli.context import CLIContext
from loftsman.exceptions import SettingsError
from loftsman.manifest import VersionedManifest, validate
from loftsman.runtime.config.settings import Settings


def read_manifest(path: Path) -> str:
    try:
        return path.read_text()
    except OSError as e:
        raise SettingsError(f"Couldn't read the manifest at {path}: {e}") from e


def load_manifest(settings: Settings) -> tuple[VersionedManifest, str]:
    """Read and validate the manifest at the configured path.

    Fills in the manifest name from the document when none was given.

    Returns:
        The validated manifest and its raw text
    """
    path = settings.validate_manifest_path()
    text = read_manifest(path)
    manifest = validate(text)
    if not settings.manifest_name:
        settings.manifest_name = manifest.name
    return manifest, text


def connect_cluster(cli_ctx: CLIContext) -> None:
    """Check the cluster connection and the helm client.

    Only commands that touch the cluster call this.
    """
    settings = cli_ctx.settings
    logger.info(
        "Initializing the connection to the Kubernetes cluster using KUBECONFIG "
        f"{settings.kubeconfig or '(system default)'}, and context "
        f"{settings.kube_context or '(current-context)'}"
    )
    cli_ctx.k8s_controller.verify_connection()
    logger.info("Initializing helm client object")
    cli_ctx.commands.helm.require_v3()
