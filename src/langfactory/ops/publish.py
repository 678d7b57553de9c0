"""
Publish operations.

``publish_rows`` writes explicit pairs; ``publish_workspace`` first collects
the exportable pairs of a workspace document (catalog → sequences → entries
→ identifiers). Both report one outcome per pair. A batch with failed
identifiers still succeeds as an operation: the failures are in the payload
and surfaced as warnings.
"""

from __future__ import annotations

import threading
from typing import Any

from langfactory.core.errors import FactoryError
from langfactory.core.logging import get_logger
from langfactory.core.retry import ExponentialBackoff
from langfactory.domain.models import ExportPair, Namespace
from langfactory.domain.workspace import Workspace
from langfactory.ops.context import OperationContext
from langfactory.ops.requests import ListArchiveRequest, PublishRowsRequest, PublishWorkspaceRequest
from langfactory.ops.result import OperationResult, fail_from_error, start_timer
from langfactory.publish.pipeline import Publisher, PublishResult
from langfactory.store.namespaces import NamespaceRepository
from langfactory.store.published import PublishedRepository

logger = get_logger(__name__)


def build_publisher(ctx: OperationContext) -> Publisher:
    """Publisher configured from the context's settings."""
    settings = ctx.settings
    return Publisher(
        ctx.conn,
        connect=ctx.connect,
        retry=ExponentialBackoff(
            max_attempts=settings.publish_max_attempts,
            base_delay=settings.publish_base_delay,
            max_delay=settings.publish_max_delay,
        ),
        workers=settings.publish_workers,
        updated_by=ctx.user,
    )


def _publish(
    ctx: OperationContext,
    namespace: Namespace,
    pairs: list[ExportPair],
    reason: str | None,
    cancel_event: threading.Event | None,
) -> tuple[PublishResult, list[str]]:
    result = build_publisher(ctx).publish(namespace, pairs, reason, cancel_event=cancel_event)
    warnings = [
        f"{o.identifier}: {o.status.value}" + (f" ({o.error})" if o.error else "")
        for o in result.outcomes
        if o.status.value in ("failed", "cancelled")
    ]
    return result, warnings


def publish_rows(
    ctx: OperationContext,
    request: PublishRowsRequest,
    *,
    cancel_event: threading.Event | None = None,
) -> OperationResult[dict[str, Any]]:
    """Upsert explicit ``(identifier, value)`` pairs."""
    timer = start_timer()

    try:
        namespace = NamespaceRepository(ctx.conn).get(request.namespace)
        pairs = [ExportPair.from_value(r) for r in request.rows]
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "namespace": namespace.slug, "pairs": [p.to_dict() for p in pairs]},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        result, warnings = _publish(ctx, namespace, pairs, request.reason, cancel_event)
        return OperationResult.ok(result.to_dict(), warnings=warnings, elapsed_ms=timer.elapsed_ms)
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="publish_rows", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Publish failed: {exc}", elapsed_ms=timer.elapsed_ms)


def publish_workspace(
    ctx: OperationContext,
    request: PublishWorkspaceRequest,
    *,
    cancel_event: threading.Event | None = None,
) -> OperationResult[dict[str, Any]]:
    """Collect a workspace's exportable pairs and publish them.

    With ``ctx.dry_run`` the collected pairs are returned and nothing is
    written. With ``request.refresh`` the published view is rebuilt after
    the batch.
    """
    timer = start_timer()

    try:
        namespace = NamespaceRepository(ctx.conn).get(request.namespace)
        workspace = Workspace.from_dict(
            request.workspace,
            namespace=request.namespace,
            case_sensitive=ctx.settings.case_sensitive,
            enforce_no_match=ctx.settings.enforce_no_match,
        )
        pairs = workspace.exportable()
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "namespace": namespace.slug, "pairs": [p.to_dict() for p in pairs]},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        result, warnings = _publish(ctx, namespace, pairs, request.reason, cancel_event)
        data = result.to_dict()
        if request.refresh:
            refreshed = PublishedRepository(ctx.conn, namespace).refresh_view()
            data["refreshed"] = {"rows": refreshed.rows, "refreshed_at": refreshed.refreshed_at}
        return OperationResult.ok(data, warnings=warnings, elapsed_ms=timer.elapsed_ms)
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="publish_workspace", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Publish failed: {exc}", elapsed_ms=timer.elapsed_ms)


def refresh_view(ctx: OperationContext, namespace: str) -> OperationResult[dict[str, Any]]:
    """Rebuild the published view from active records."""
    timer = start_timer()

    try:
        ns = NamespaceRepository(ctx.conn).get(namespace)
        if ctx.dry_run:
            return OperationResult.ok({"dry_run": True, "would_refresh": ns.slug}, elapsed_ms=timer.elapsed_ms)
        refreshed = PublishedRepository(ctx.conn, ns).refresh_view()
        return OperationResult.ok(
            {"namespace": refreshed.namespace, "rows": refreshed.rows, "refreshed_at": refreshed.refreshed_at},
            elapsed_ms=timer.elapsed_ms,
        )
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="refresh_view", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Refresh failed: {exc}", elapsed_ms=timer.elapsed_ms)


def list_published(ctx: OperationContext, namespace: str) -> OperationResult[list[dict[str, Any]]]:
    """Rows of the published view as of its last refresh."""
    timer = start_timer()

    try:
        ns = NamespaceRepository(ctx.conn).get(namespace)
        return OperationResult.ok(PublishedRepository(ctx.conn, ns).list_published(), elapsed_ms=timer.elapsed_ms)
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="list_published", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Failed to list published: {exc}", elapsed_ms=timer.elapsed_ms)


def get_active(ctx: OperationContext, namespace: str, identifier: str) -> OperationResult[dict[str, Any]]:
    """Current active record of one identifier."""
    timer = start_timer()

    try:
        ns = NamespaceRepository(ctx.conn).get(namespace)
        record = PublishedRepository(ctx.conn, ns).get_active(identifier)
        if record is None:
            return OperationResult.fail(
                "NOT_FOUND",
                f"Identifier '{identifier}' is not published in '{namespace}'",
                elapsed_ms=timer.elapsed_ms,
            )
        return OperationResult.ok(record.to_dict(), elapsed_ms=timer.elapsed_ms)
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="get_active", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Failed to get record: {exc}", elapsed_ms=timer.elapsed_ms)


def list_archive(ctx: OperationContext, request: ListArchiveRequest) -> OperationResult[dict[str, Any]]:
    """Archived values, oldest first, optionally for one identifier."""
    timer = start_timer()

    try:
        ns = NamespaceRepository(ctx.conn).get(request.namespace)
        repo = PublishedRepository(ctx.conn, ns)
        items = repo.list_archive(request.identifier, limit=request.limit, offset=request.offset)
        total = repo.count_archive(request.identifier)
        return OperationResult.ok(
            {
                "items": [a.to_dict() for a in items],
                "total": total,
                "limit": request.limit,
                "offset": request.offset,
                "has_more": request.offset + request.limit < total,
            },
            elapsed_ms=timer.elapsed_ms,
        )
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="list_archive", error=str(exc))
        return OperationResult.fail("INTERNAL", f"Failed to list archive: {exc}", elapsed_ms=timer.elapsed_ms)
