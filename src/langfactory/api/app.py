"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers and lifespan
events into a single ``FastAPI`` instance. The lifespan configures logging,
creates the core tables and owns the catalog autosaver, whose pending
snapshot is flushed on shutdown. With an in-memory database the lifespan
also owns the one connection every request shares.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from langfactory.api.deps import get_settings
from langfactory.api.middleware.errors import unhandled_exception_handler
from langfactory.api.middleware.request_id import RequestIDMiddleware
from langfactory.api.settings import FactoryAPISettings
from langfactory.core.logging import configure_logging, get_logger
from langfactory.core.schema import create_core_tables
from langfactory.core.sqlite_conn import SqliteConnection
from langfactory.ops.context import connection_factory
from langfactory.store.catalogs import CatalogAutosaver


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown hooks."""
    settings: FactoryAPISettings = app.state.settings
    configure_logging(level=settings.log_level, json_format=settings.json_logs)
    log = get_logger("langfactory.api")
    log.info("api_starting", version=app.version, database=settings.database_url)

    conn = SqliteConnection(settings.database_url, busy_timeout=settings.busy_timeout)
    try:
        create_core_tables(conn)
    except Exception:
        conn.close()
        raise

    connect = connection_factory(settings)
    if connect is None:
        # an in-memory database lives only as long as its connection
        app.state.shared_conn = conn
    else:
        conn.close()
    autosaver = CatalogAutosaver(connect, delay=settings.autosave_delay) if connect else None
    app.state.autosaver = autosaver

    yield

    if autosaver is not None:
        flushed = autosaver.close()
        log.info("autosaver_closed", flushed=flushed)
    if app.state.shared_conn is not None:
        app.state.shared_conn.close()
        app.state.shared_conn = None
    log.info("api_shutting_down")


def create_app(*, settings: FactoryAPISettings | None = None) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : FactoryAPISettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.state.autosaver = None
    app.state.shared_conn = None

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from langfactory.api.routers import catalog, health, namespaces, publish

    prefix = settings.api_prefix
    app.include_router(health.router, prefix=prefix, tags=["health"])
    app.include_router(namespaces.router, prefix=prefix, tags=["namespaces"])
    app.include_router(catalog.router, prefix=prefix, tags=["catalog"])
    app.include_router(publish.router, prefix=prefix, tags=["publish"])

    return app
