"""Ship and avast commands.

These are the only commands that connect to the cluster.
"""

from pathlib import Path
from typing import Annotated

import typer

from loftsman.cli.context import get_cli_context
from loftsman.cli.deployment.shipper import Shipper
from loftsman.cli.shared.console import with_error_handling
from loftsman.runtime.config.settings import ChartsSourceSettings
from loftsman.runtime.logging import ShipLog

from .shared import connect_cluster, load_manifest


@with_error_handling
def ship(
    ctx: typer.Context,
    manifest_path: Annotated[
        Path | None,
        typer.Option(
            "--manifest-path",
            help="Path to the manifest to ship",
        ),
    ] = None,
    charts_repo: Annotated[
        str | None,
        typer.Option(
            "--charts-repo",
            help="Default chart repository URL, for charts that name no source",
        ),
    ] = None,
    charts_repo_username: Annotated[
        str | None,
        typer.Option(
            "--charts-repo-username",
            help="Username for the default chart repository",
        ),
    ] = None,
    charts_repo_password: Annotated[
        str | None,
        typer.Option(
            "--charts-repo-password",
            help="Password for the default chart repository",
        ),
    ] = None,
    charts_path: Annotated[
        Path | None,
        typer.Option(
            "--charts-path",
            help="Default directory of packaged .tgz charts",
        ),
    ] = None,
) -> None:
    """Release every chart of a manifest to the cluster.

    Examples:
        loftsman ship --manifest-path manifest.yaml --charts-path ./packages
        loftsman ship --manifest-path manifest.yaml --charts-repo https://charts.example.com
    """
    cli_ctx = get_cli_context(ctx)
    settings = cli_ctx.settings
    if manifest_path is not None:
        settings.manifest_path = manifest_path
    source = settings.charts_source.model_dump()
    source.update(
        {
            key: value
            for key, value in {
                "repo": charts_repo,
                "repo_username": charts_repo_username,
                "repo_password": charts_repo_password,
                "path": charts_path,
            }.items()
            if value is not None
        }
    )
    settings.charts_source = ChartsSourceSettings(**source)

    with ShipLog(
        "ship", json_log_path=settings.json_log_path, console=cli_ctx.console
    ) as ship_log:
        connect_cluster(cli_ctx)
        manifest, manifest_text = load_manifest(settings)
        settings.create_temp_directory()
        try:
            Shipper(
                settings,
                cli_ctx.k8s_controller,
                cli_ctx.commands,
                ship_log,
                console=cli_ctx.console,
                constants=cli_ctx.constants,
            ).ship(manifest, manifest_text)
        finally:
            settings.cleanup_temp_directory()


@with_error_handling
def avast(
    ctx: typer.Context,
    manifest_path: Annotated[
        Path | None,
        typer.Option(
            "--manifest-path",
            help="Manifest whose ship to clear, its metadata.name is used",
        ),
    ] = None,
    manifest_name: Annotated[
        str | None,
        typer.Option(
            "--manifest-name",
            help="Name of the manifest whose ship to clear",
        ),
    ] = None,
) -> None:
    """Clear a ship record left active by a ship that died.

    This doesn't stop a running ship; stop that process instead.

    Examples:
        loftsman avast --manifest-name core-services
        loftsman avast --manifest-path manifest.yaml
    """
    cli_ctx = get_cli_context(ctx)
    settings = cli_ctx.settings
    if manifest_name is not None:
        settings.manifest_name = manifest_name
    if manifest_path is not None:
        settings.manifest_path = manifest_path

    with ShipLog(
        "avast", json_log_path=settings.json_log_path, console=cli_ctx.console
    ) as ship_log:
        connect_cluster(cli_ctx)
        if not settings.manifest_name and settings.manifest_path is not None:
            load_manifest(settings)

        Shipper(
            settings,
            cli_ctx.k8s_controller,
            cli_ctx.commands,
            ship_log,
            console=cli_ctx.console,
            constants=cli_ctx.constants,
        ).avast(
            settings.manifest_name,
            lambda action, details: cli_ctx.console.confirm_typed(
                action, details, expected=cli_ctx.constants.AVAST_CONFIRMATION
            ),
        )
