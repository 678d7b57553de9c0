"""
Namespace operations.

Provisioning is idempotent: creating an existing namespace succeeds with
``status="exists"`` and leaves its tables untouched.
"""

from __future__ import annotations

from typing import Any

from langfactory.core.errors import FactoryError
from langfactory.core.logging import get_logger
from langfactory.ops.context import OperationContext
from langfactory.ops.requests import CreateNamespaceRequest
from langfactory.ops.result import OperationResult, fail_from_error, start_timer
from langfactory.store.namespaces import NamespaceRepository, validate_slug

logger = get_logger(__name__)


def create_namespace(
    ctx: OperationContext,
    request: CreateNamespaceRequest,
) -> OperationResult[dict[str, Any]]:
    """Register a namespace and create its active, archive and published tables."""
    timer = start_timer()

    try:
        validate_slug(request.slug)
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "would_ensure": request.slug},
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        namespace, status = NamespaceRepository(ctx.conn).ensure(
            request.slug,
            language=request.language or ctx.settings.default_language,
            tenant=request.tenant,
            created_by=ctx.user,
            meta=request.meta,
        )
        return OperationResult.ok(
            {"status": status.value, "namespace": namespace.to_dict()},
            elapsed_ms=timer.elapsed_ms,
        )
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="create_namespace", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to create namespace: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )


def list_namespaces(ctx: OperationContext) -> OperationResult[list[dict[str, Any]]]:
    """List provisioned namespaces ordered by slug."""
    timer = start_timer()

    try:
        items = [n.to_dict() for n in NamespaceRepository(ctx.conn).list_all()]
        return OperationResult.ok(items, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="list_namespaces", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to list namespaces: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )


def get_namespace(ctx: OperationContext, slug: str) -> OperationResult[dict[str, Any]]:
    timer = start_timer()

    try:
        namespace = NamespaceRepository(ctx.conn).get(slug)
        return OperationResult.ok(namespace.to_dict(), elapsed_ms=timer.elapsed_ms)
    except FactoryError as exc:
        return fail_from_error(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="get_namespace", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to get namespace: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )
