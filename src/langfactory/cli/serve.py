"""
CLI: ``langfactory serve``: start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from langfactory.cli.utils import console

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Bind address"),
    port: int = typer.Option(12100, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the langfactory REST API server.

    One worker process: the catalog autosaver lives in process memory.
    """
    console.print(f"[bold green]Starting langfactory API[/bold green] on {host}:{port}")
    uvicorn.run(
        "langfactory.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
