"""
FastAPI dependency injection: shared singletons and per-request factories.

Usage in routers::

    from langfactory.api.deps import OpContext

    @router.get("/things")
    def list_things(ctx: OpContext):
        ...

Settings are loaded once per process. Each request gets its own SQLite
connection, except with an in-memory database, where all requests share
the lifespan's connection. The catalog autosaver is shared through
``app.state``.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from langfactory.api.settings import FactoryAPISettings
from langfactory.core.sqlite_conn import SqliteConnection
from langfactory.ops.context import OperationContext, connection_factory
from langfactory.store.catalogs import CatalogAutosaver

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> FactoryAPISettings:
    """Cached settings, loaded once per process."""
    return FactoryAPISettings()


# ── Database connection (per-request) ────────────────────────────────────


def get_connection(
    request: Request,
    settings: Annotated[FactoryAPISettings, Depends(get_settings)],
) -> Generator[SqliteConnection, None, None]:
    """Yield a database connection for the request lifespan.

    An in-memory database has a single connection opened by the app
    lifespan; requests share it and never close it.
    """
    shared = getattr(request.app.state, "shared_conn", None)
    if shared is not None:
        yield shared
        return
    conn = SqliteConnection(settings.database_url, busy_timeout=settings.busy_timeout)
    try:
        yield conn
    finally:
        conn.close()


# ── Operation context (per-request) ──────────────────────────────────────


def get_operation_context(
    request: Request,
    conn: Annotated[SqliteConnection, Depends(get_connection)],
    settings: Annotated[FactoryAPISettings, Depends(get_settings)],
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request.

    The editor identity comes from the ``X-User`` header and is recorded
    as ``updated_by`` on catalog saves and published records.
    """
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    return OperationContext(
        conn=conn,
        settings=settings,
        connect=connection_factory(settings),
        request_id=request_id,
        caller="api",
        user=request.headers.get("X-User"),
    )


def get_autosaver(request: Request) -> CatalogAutosaver | None:
    """The app-wide catalog autosaver, if the lifespan created one."""
    return getattr(request.app.state, "autosaver", None)


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[FactoryAPISettings, Depends(get_settings)]
Conn = Annotated[SqliteConnection, Depends(get_connection)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
Autosaver = Annotated[CatalogAutosaver | None, Depends(get_autosaver)]
