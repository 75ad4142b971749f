"""Manifest commands: create a baseline manifest, validate manifests."""

from pathlib import Path
from typing import Annotated

import typer

from loftsman.cli.context import get_cli_context
from loftsman.cli.shared.console import with_error_handling
from loftsman.manifest import create as create_manifest
from loftsman.manifest import parse_chart_names, validate
from loftsman.runtime.logging import ShipLog

from .shared import read_manifest

manifest_app = typer.Typer(
    name="manifest",
    help="Create and validate loftsman manifests.",
    no_args_is_help=True,
)


@manifest_app.command()
@with_error_handling
def create(
    ctx: typer.Context,
    chart_names: Annotated[
        str,
        typer.Option(
            "--chart-names",
            help="Comma-separated chart names to list in the new manifest",
        ),
    ] = "",
) -> None:
    """Print a new manifest with empty fields to fill in.

    Examples:
        loftsman manifest create --chart-names cray-service,cray-ui > manifest.yaml
    """
    cli_ctx = get_cli_context(ctx)
    settings = cli_ctx.settings
    settings.chart_names = chart_names

    with ShipLog("manifest create", json_log_path=settings.json_log_path):
        typer.echo(create_manifest(parse_chart_names(settings.chart_names)))


@manifest_app.command("validate")
@with_error_handling
def validate_command(
    ctx: typer.Context,
    paths: Annotated[
        list[Path],
        typer.Argument(help="Manifest files to validate"),
    ],
) -> None:
    """Validate one or more manifest files.

    Examples:
        loftsman manifest validate manifest.yaml
        loftsman manifest validate manifests/*.yaml
    """
    cli_ctx = get_cli_context(ctx)
    settings = cli_ctx.settings

    with ShipLog(
        "manifest validate",
        json_log_path=settings.json_log_path,
        console=cli_ctx.console,
    ):
        for path in paths:
            settings.manifest_path = path
            validate(read_manifest(settings.validate_manifest_path()))
            cli_ctx.console.ok(f"{path} is valid!")
