"""
CLI: ``langfactory publish``: publish workspaces and inspect published data.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from langfactory.cli.utils import (
    console,
    err_console,
    fail_if_error,
    make_context,
    output_json,
    output_result,
    print_table,
    print_warnings,
    read_json_file,
)
from langfactory.ops.publish import get_active as _get_active
from langfactory.ops.publish import list_archive as _list_archive
from langfactory.ops.publish import list_published as _list_published
from langfactory.ops.publish import publish_rows as _publish_rows
from langfactory.ops.publish import publish_workspace as _publish_workspace
from langfactory.ops.publish import refresh_view as _refresh_view
from langfactory.ops.requests import ListArchiveRequest, PublishRowsRequest, PublishWorkspaceRequest

app = typer.Typer(no_args_is_help=True)


def _render_batch(data: dict[str, Any]) -> None:
    if data.get("dry_run"):
        pairs = data["pairs"]
        if not pairs:
            console.print("[dim]Nothing to publish.[/dim]")
            return
        print_table(pairs, title=f"Would publish to {data['namespace']}")
        return

    if data["outcomes"]:
        print_table(
            data["outcomes"],
            title=f"Batch {data['batch_id']}",
            columns=["identifier", "status", "version", "attempts", "error"],
        )
    console.print(
        f"inserted={data['inserted']} updated={data['updated']} unchanged={data['unchanged']} "
        f"archived={data['archived']} failed={data['failed']} cancelled={data['cancelled']}"
    )
    if "refreshed" in data:
        console.print(f"[green]Published view refreshed[/green]: {data['refreshed']['rows']} rows")


@app.command("workspace")
def publish_workspace(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    path: Path = typer.Argument(..., help="Workspace JSON: catalog, sequences, entries"),
    reason: str | None = typer.Option(None, "--reason", "-r", help="Reason slug; defaults to the namespace"),
    refresh: bool = typer.Option(False, "--refresh", help="Rebuild the published view afterwards"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the collected pairs only"),
    user: str | None = typer.Option(None, "--user", "-u"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Collect a workspace's exportable pairs and publish them."""
    document = read_json_file(path)
    if not isinstance(document, dict):
        err_console.print("[bold red]Workspace must be a JSON object[/bold red]")
        raise typer.Exit(code=1)

    ctx, conn = make_context(database, dry_run=dry_run, user=user)
    try:
        result = _publish_workspace(
            ctx,
            PublishWorkspaceRequest(namespace=namespace, workspace=document, reason=reason, refresh=refresh),
        )
    finally:
        conn.close()
    fail_if_error(result)

    if json_out:
        output_json(result.data)
        return
    print_warnings(result)
    _render_batch(result.data)


@app.command("pair")
def publish_pair(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    identifier: str = typer.Argument(..., help="Record identifier"),
    value: str = typer.Argument(..., help="Output value"),
    reason: str | None = typer.Option(None, "--reason", "-r"),
    user: str | None = typer.Option(None, "--user", "-u"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Publish a single identifier/value pair."""
    ctx, conn = make_context(database, user=user)
    try:
        result = _publish_rows(
            ctx,
            PublishRowsRequest(namespace=namespace, rows=[{"identifier": identifier, "value": value}], reason=reason),
        )
    finally:
        conn.close()
    fail_if_error(result)

    if json_out:
        output_json(result.data)
        return
    print_warnings(result)
    _render_batch(result.data)


@app.command("refresh")
def refresh(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Rebuild the published view from active records."""
    ctx, conn = make_context(database)
    try:
        result = _refresh_view(ctx, namespace)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Refreshed")


@app.command("show")
def show(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    identifier: str | None = typer.Option(None, "--identifier", "-i", help="Show the active record of one identifier"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the published view, or one active record."""
    ctx, conn = make_context(database)
    try:
        result = _get_active(ctx, namespace, identifier) if identifier else _list_published(ctx, namespace)
    finally:
        conn.close()
    output_result(result, as_json=json_out, title=f"Published: {namespace}")


@app.command("archive")
def archive(
    namespace: str = typer.Argument(..., help="Namespace slug"),
    identifier: str | None = typer.Option(None, "--identifier", "-i"),
    limit: int = typer.Option(100, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List archived values, oldest first."""
    ctx, conn = make_context(database)
    try:
        result = _list_archive(
            ctx,
            ListArchiveRequest(namespace=namespace, identifier=identifier, limit=limit, offset=offset),
        )
    finally:
        conn.close()
    fail_if_error(result)

    if json_out:
        output_json(result.data)
        return
    items = result.data["items"]
    if not items:
        console.print("[dim]No archived values.[/dim]")
        return
    print_table(
        items,
        title=f"Archive: {namespace}",
        columns=["identifier", "value", "version", "archived_at", "reason", "batch_id"],
    )
    console.print(f"\n[dim]Showing {len(items)} of {result.data['total']} (offset {result.data['offset']})[/dim]")
