"""
CLI: ``langfactory namespace``: provision and list namespaces.
"""

from __future__ import annotations

import json

import typer

from langfactory.cli.utils import err_console, make_context, output_result
from langfactory.ops.namespaces import create_namespace as _create
from langfactory.ops.namespaces import list_namespaces as _list
from langfactory.ops.requests import CreateNamespaceRequest

app = typer.Typer(no_args_is_help=True)


@app.command("create")
def create(
    slug: str = typer.Argument(..., help="Namespace slug (lowercase letters, digits, '_' and '-')"),
    language: str | None = typer.Option(None, "--language", "-l", help="Language scope"),
    tenant: str | None = typer.Option(None, "--tenant", "-t", help="Tenant scope"),
    meta: str = typer.Option("{}", "--meta", help="JSON metadata"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate the slug only"),
    user: str | None = typer.Option(None, "--user", "-u", help="Recorded as created_by"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Provision a namespace and its record tables (idempotent)."""
    try:
        meta_dict = json.loads(meta)
    except json.JSONDecodeError as e:
        err_console.print(f"[bold red]Invalid JSON meta:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    ctx, conn = make_context(database, dry_run=dry_run, user=user)
    try:
        result = _create(ctx, CreateNamespaceRequest(slug=slug, language=language, tenant=tenant, meta=meta_dict))
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Namespace")


@app.command("list")
def list_namespaces(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List provisioned namespaces."""
    ctx, conn = make_context(database)
    try:
        result = _list(ctx)
    finally:
        conn.close()
    if result.success and result.data and not json_out:
        result.data = [
            {k: ns[k] for k in ("slug", "language", "tenant", "status", "updated_at")} for ns in result.data
        ]
    output_result(result, as_json=json_out, title="Namespaces")
