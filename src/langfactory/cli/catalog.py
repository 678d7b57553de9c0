"""
CLI: ``langfactory catalog``: inspect and import catalogs.
"""

from __future__ import annotations

from pathlib import Path

import typer

from langfactory.cli.utils import (
    console,
    err_console,
    fail_if_error,
    make_context,
    output_json,
    output_result,
    print_table,
    read_json_file,
)
from langfactory.ops.catalog import get_catalog as _get
from langfactory.ops.catalog import save_catalog as _save
from langfactory.ops.catalog import update_catalog_entry as _update
from langfactory.ops.requests import SaveCatalogRequest, UpdateCatalogEntryRequest

app = typer.Typer(no_args_is_help=True)

_COLUMNS = ["b_key", "value_a", "value_b", "c_key"]


@app.command("show")
def show(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a namespace's catalog."""
    ctx, conn = make_context(database)
    try:
        result = _get(ctx, namespace)
    finally:
        conn.close()
    fail_if_error(result)

    if json_out:
        output_json(result.data)
        return
    entries = result.data["entries"]
    if not entries:
        console.print("[dim]Catalog is empty.[/dim]")
        return
    print_table(entries, title=f"Catalog: {namespace}", columns=_COLUMNS)


@app.command("import")
def import_catalog(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    path: Path = typer.Argument(..., help="JSON file: a list of entries or {\"entries\": [...]}"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without saving"),
    user: str | None = typer.Option(None, "--user", "-u"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Replace a catalog from a JSON file. Uniqueness is re-checked."""
    document = read_json_file(path)
    entries = document.get("entries") if isinstance(document, dict) else document
    if not isinstance(entries, list):
        err_console.print("[bold red]Expected a list of catalog entries[/bold red]")
        raise typer.Exit(code=1)

    ctx, conn = make_context(database, dry_run=dry_run, user=user)
    try:
        result = _save(ctx, SaveCatalogRequest(namespace=namespace, entries=entries))
    finally:
        conn.close()
    fail_if_error(result)

    if json_out:
        output_json(result.data)
    elif dry_run:
        console.print(f"[yellow]Dry run:[/yellow] {len(result.data['entries'])} entries are valid")
    else:
        console.print(f"[green]Saved[/green] {result.data['saved']} entries to {namespace}")


@app.command("set")
def set_entry(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    b_key: str = typer.Argument(..., help="Entry key, e.g. 'column B-3'"),
    value_a: str | None = typer.Option(None, "--value-a", "-a", help="Token value; '' clears"),
    value_b: str | None = typer.Option(None, "--value-b", "-b", help="Display value; '' clears"),
    user: str | None = typer.Option(None, "--user", "-u"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Upsert one catalog entry."""
    ctx, conn = make_context(database, user=user)
    try:
        result = _update(
            ctx,
            UpdateCatalogEntryRequest(namespace=namespace, b_key=b_key, value_a=value_a, value_b=value_b),
        )
    finally:
        conn.close()
    if result.success and not json_out:
        result.data = result.data["entry"]
    output_result(result, as_json=json_out, title="Catalog Entry")
