"""
Catalog operations.

Every write goes through :class:`~langfactory.domain.catalog.Catalog` so the
uniqueness and no-match rules hold for persisted catalogs exactly as they
do in the editor. Single-entry edits can be coalesced through a
:class:`~langfactory.store.catalogs.CatalogAutosaver`.
"""

from __future__ import annotations

from typing import Any

from langfactory.core.errors import FactoryError
from langfactory.core.logging import get_logger
from langfactory.domain.catalog import Catalog
from langfactory.domain.models import CatalogEntry
from langfactory.ops.context import OperationContext
from langfactory.ops.requests import SaveCatalogRequest, UpdateCatalogEntryRequest
from langfactory.ops.result import OperationResult, fail_from_error, start_timer
from langfactory.store.catalogs import CatalogAutosaver, CatalogRepository
from langfactory.store.namespaces import NamespaceRepository

logger = get_logger(__name__)


def _build_catalog(ctx: OperationContext, namespace: str, entries: list[CatalogEntry]) -> Catalog:
    return Catalog.from_entries(
        namespace,
        entries,
        case_sensitive=ctx.settings.case_sensitive,
        enforce_no_match=ctx.settings.enforce_no_match,
    )


def get_catalog(
    ctx: OperationContext,
    namespace: str,
    *,
    autosaver: CatalogAutosaver | None = None,
) -> OperationResult[dict[str, Any]]:
    """Current catalog, including edits still waiting in the autosaver."""
    timer = start_timer()

    try:
        NamespaceRepository(ctx.conn).get(namespace)
        entries = autosaver.latest(namespace) if autosaver else None
        pending = entries is not None
        if entries is None:
            entries = CatalogRepository(ctx.conn).load(namespace)
        return OperationResult.ok(
            {"namespace": namespace, "entries": [e.to_dict() for e in entries], "pending": pending},
            elapsed_ms=timer.elapsed_ms,
        )
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="get_catalog", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Failed to load catalog: {exc}", elapsed_ms=timer.elapsed_ms)


def save_catalog(
    ctx: OperationContext,
    request: SaveCatalogRequest,
    *,
    autosaver: CatalogAutosaver | None = None,
) -> OperationResult[dict[str, Any]]:
    """Validate and replace a namespace's catalog."""
    timer = start_timer()

    try:
        NamespaceRepository(ctx.conn).get(request.namespace)
        catalog = _build_catalog(ctx, request.namespace, [CatalogEntry.from_dict(e) for e in request.entries])
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)

    entries = catalog.entries()
    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "namespace": request.namespace, "entries": [e.to_dict() for e in entries]},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        if autosaver is not None:
            # pending single-entry edits would otherwise overwrite this snapshot
            autosaver.flush()
        count = CatalogRepository(ctx.conn).save(request.namespace, entries, updated_by=ctx.user)
        return OperationResult.ok(
            {"namespace": request.namespace, "saved": count, "entries": [e.to_dict() for e in entries]},
            elapsed_ms=timer.elapsed_ms,
        )
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="save_catalog", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Failed to save catalog: {exc}", elapsed_ms=timer.elapsed_ms)


def update_catalog_entry(
    ctx: OperationContext,
    request: UpdateCatalogEntryRequest,
    *,
    autosaver: CatalogAutosaver | None = None,
) -> OperationResult[dict[str, Any]]:
    """Upsert one entry; saved now, or scheduled when an autosaver is given."""
    timer = start_timer()
    repo = CatalogRepository(ctx.conn)
    result: dict[str, CatalogEntry] = {}

    def apply(entries: list[CatalogEntry]) -> list[CatalogEntry]:
        catalog = _build_catalog(ctx, request.namespace, entries)
        result["entry"] = catalog.upsert(request.b_key, request.value_a, request.value_b)
        return catalog.entries()

    try:
        NamespaceRepository(ctx.conn).get(request.namespace)
        if ctx.dry_run:
            apply(repo.load(request.namespace))
            mode = "dry_run"
        elif autosaver is not None:
            autosaver.edit(request.namespace, lambda: repo.load(request.namespace), apply, updated_by=ctx.user)
            mode = "scheduled"
        else:
            repo.save(request.namespace, apply(repo.load(request.namespace)), updated_by=ctx.user)
            mode = "saved"
        return OperationResult.ok(
            {"namespace": request.namespace, "entry": result["entry"].to_dict(), "persistence": mode},
            elapsed_ms=timer.elapsed_ms,
        )
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="update_catalog_entry", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Failed to update catalog entry: {exc}", elapsed_ms=timer.elapsed_ms)
