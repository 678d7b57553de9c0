"""
Publish endpoints.

POST /namespaces/{slug}/publish                  upsert explicit pairs
POST /namespaces/{slug}/workspace/publish        collect a workspace and publish it
POST /namespaces/{slug}/refresh                  rebuild the published view
GET  /namespaces/{slug}/published                rows of the published view
GET  /namespaces/{slug}/active/{identifier}      current active record
GET  /namespaces/{slug}/archive                  archived values, oldest first
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from langfactory.api.deps import OpContext
from langfactory.api.utils import _handle_error, _success
from langfactory.ops.publish import get_active as _get_active
from langfactory.ops.publish import list_archive as _list_archive
from langfactory.ops.publish import list_published as _list_published
from langfactory.ops.publish import publish_rows as _publish_rows
from langfactory.ops.publish import publish_workspace as _publish_workspace
from langfactory.ops.publish import refresh_view as _refresh_view
from langfactory.ops.requests import ListArchiveRequest, PublishRowsRequest, PublishWorkspaceRequest

router = APIRouter(prefix="/namespaces/{slug}")


class PublishRow(BaseModel):
    identifier: str
    value: str


class PublishRowsBody(BaseModel):
    """Explicit ``(identifier, value)`` pairs."""

    rows: list[PublishRow] = Field(default_factory=list)
    reason: str | None = Field(default=None, description="Reason slug; defaults to the namespace")


class PublishWorkspaceBody(BaseModel):
    """Workspace document: catalog, sequences and entry blocks."""

    workspace: dict[str, Any] = Field(default_factory=dict)
    reason: str | None = None
    refresh: bool = Field(default=False, description="Rebuild the published view after the batch")


@router.post("/publish")
def publish_rows(
    ctx: OpContext,
    slug: str,
    body: PublishRowsBody,
    request: Request,
    dry_run: bool = Query(False, description="Return the pairs without writing"),
):
    ctx.dry_run = dry_run
    rows = [r.model_dump() for r in body.rows]
    result = _publish_rows(ctx, PublishRowsRequest(namespace=slug, rows=rows, reason=body.reason))
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.post("/workspace/publish")
def publish_workspace(
    ctx: OpContext,
    slug: str,
    body: PublishWorkspaceBody,
    request: Request,
    dry_run: bool = Query(False, description="Return the collected pairs without writing"),
):
    """Collect exportable pairs from the workspace and publish them.

    Per-identifier failures do not fail the request; they are listed in
    ``data.outcomes`` and repeated in ``warnings``.
    """
    ctx.dry_run = dry_run
    result = _publish_workspace(
        ctx,
        PublishWorkspaceRequest(namespace=slug, workspace=body.workspace, reason=body.reason, refresh=body.refresh),
    )
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.post("/refresh")
def refresh_view(ctx: OpContext, slug: str, request: Request):
    result = _refresh_view(ctx, slug)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.get("/published")
def list_published(ctx: OpContext, slug: str, request: Request):
    result = _list_published(ctx, slug)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.get("/active/{identifier}")
def get_active(ctx: OpContext, slug: str, identifier: str, request: Request):
    result = _get_active(ctx, slug, identifier)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.get("/archive")
def list_archive(
    ctx: OpContext,
    slug: str,
    request: Request,
    identifier: str | None = Query(None, description="Only this identifier"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    result = _list_archive(
        ctx,
        ListArchiveRequest(namespace=slug, identifier=identifier, limit=limit, offset=offset),
    )
    if not result.success:
        return _handle_error(result, request)
    return _success(result)
