"""
Root Typer application for the langfactory CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from langfactory.cli.catalog import app as catalog_app
from langfactory.cli.namespace import app as namespace_app
from langfactory.cli.publish import app as publish_app
from langfactory.cli.serve import app as serve_app
from langfactory.core.logging import configure_logging

app = Typer(
    name="langfactory",
    help="langfactory: build language-record catalogs and publish them with history.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from langfactory import __version__

        typer.echo(f"langfactory {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level to stderr."),
) -> None:
    """langfactory CLI: namespaces, catalogs and publishing."""
    configure_logging(level="DEBUG" if verbose else "WARNING", json_format=False)


app.add_typer(namespace_app, name="namespace", help="Namespace provisioning.")
app.add_typer(catalog_app, name="catalog", help="Catalog inspection and import.")
app.add_typer(publish_app, name="publish", help="Publishing and published data.")
app.add_typer(serve_app, name="serve", help="Start the API server.")
