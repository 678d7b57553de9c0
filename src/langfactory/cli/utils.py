"""
CLI utility helpers: output formatting and context construction.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from langfactory.core.settings import FactorySettings, get_settings
from langfactory.core.sqlite_conn import SqliteConnection
from langfactory.ops.context import OperationContext, connection_factory
from langfactory.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)


# ── Context helper ───────────────────────────────────────────────────────


def load_settings(database: str | None = None) -> FactorySettings:
    """Environment settings, with ``--database`` taking precedence."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"database_url": database})
    return settings


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
    user: str | None = None,
) -> tuple[OperationContext, SqliteConnection]:
    """Create an ``OperationContext`` + connection pair for CLI commands."""
    settings = load_settings(database)
    conn = SqliteConnection(settings.database_url, busy_timeout=settings.busy_timeout)
    ctx = OperationContext(
        conn=conn,
        settings=settings,
        connect=connection_factory(settings),
        caller="cli",
        user=user,
        dry_run=dry_run,
    )
    return ctx, conn


def read_json_file(path: Path) -> Any:
    """Parse a JSON document, exiting with a readable message on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        err_console.print(f"[bold red]Cannot read {path}:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    except json.JSONDecodeError as e:
        err_console.print(f"[bold red]Invalid JSON in {path}:[/bold red] {e}")
        raise typer.Exit(code=1) from e


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def fail_if_error(result: OperationResult[Any]) -> None:
    """Print the error of a failed result and exit 1."""
    if result.success:
        return
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    raise typer.Exit(code=1)


def print_warnings(result: OperationResult[Any]) -> None:
    for warning in result.warnings:
        err_console.print(f"[yellow]warning[/yellow]: {warning}")


def output_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def output_result(
    result: OperationResult[Any],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult`` to the terminal."""
    fail_if_error(result)
    data = result.data

    if as_json:
        payload = _to_dict(data) if not isinstance(data, list | tuple) else [_to_dict(d) for d in data]
        output_json(payload)
        return

    print_warnings(result)
    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        print_table(data, title=title)
    else:
        _print_dict(_to_dict(data), title=title)


def print_table(items: list, *, title: str = "", columns: list[str] | None = None) -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    rows = [_to_dict(item) for item in items]
    cols = columns or list(rows[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in cols:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in cols))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
