"""Main CLI application module.

This module provides the main entry point for the loftsman CLI, which ships
Helm charts listed in a manifest to a Kubernetes cluster.

Commands:
- manifest create/validate: Manifest scaffolding and validation
- ship: Release every chart of a manifest
- avast: Clear a ship record left active by a ship that died
"""

from pathlib import Path
from typing import Annotated

import typer

from loftsman import __version__
from loftsman.runtime.config.settings import Settings

from .commands import avast, manifest_app, ship
from .context import build_cli_context

# Create the main CLI application
app = typer.Typer(
    help="⚓ Loftsman - ship Helm charts to Kubernetes from a manifest",
    no_args_is_help=True,
    rich_markup_mode="rich",
)



def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"loftsman {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_log_path: Annotated[
        Path | None,
        typer.Option(
            "--json-log-path",
            help="File to write JSON log lines to",
        ),
    ] = None,
    kubeconfig: Annotated[
        str | None,
        typer.Option(
            "--kubeconfig",
            help="Path to the kubeconfig file (system default if not set)",
        ),
    ] = None,
    kube_context: Annotated[
        str | None,
        typer.Option(
            "--kube-context",
            help="kubeconfig context to use (current-context if not set)",
        ),
    ] = None,
    helm_binary: Annotated[
        str | None,
        typer.Option(
            "--helm-binary",
            help="Helm v3 binary to run",
        ),
    ] = None,
    loftsman_namespace: Annotated[
        str | None,
        typer.Option(
            "--loftsman-namespace",
            help="Namespace holding the ship records",
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the loftsman version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Set up settings shared by every command."""
    settings = Settings.from_env(
        json_log_path=json_log_path,
        kubeconfig=kubeconfig,
        kube_context=kube_context,
        helm_binary=helm_binary,
        namespace=loftsman_namespace,
    )
    ctx.obj = build_cli_context(settings)


app.add_typer(manifest_app, name="manifest")
app.command("ship")(ship)
app.command("avast")(avast)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
