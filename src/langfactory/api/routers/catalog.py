"""
Catalog endpoints.

GET   /namespaces/{slug}/catalog                  current catalog (including pending edits)
PUT   /namespaces/{slug}/catalog                  replace the catalog
PATCH /namespaces/{slug}/catalog/entries/{b_key}  upsert one entry (autosaved)
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from langfactory.api.deps import Autosaver, OpContext
from langfactory.api.utils import _handle_error, _success
from langfactory.ops.catalog import get_catalog as _get
from langfactory.ops.catalog import save_catalog as _save
from langfactory.ops.catalog import update_catalog_entry as _update
from langfactory.ops.requests import SaveCatalogRequest, UpdateCatalogEntryRequest

router = APIRouter(prefix="/namespaces/{slug}/catalog")


class CatalogEntrySchema(BaseModel):
    b_key: str
    c_key: str | None = None
    value_a: str = ""
    value_b: str = ""


class CatalogSaveRequest(BaseModel):
    """Full catalog snapshot."""

    entries: list[CatalogEntrySchema] = Field(default_factory=list)


class CatalogEntryUpdateRequest(BaseModel):
    """Partial entry update; omitted values are kept, ``""`` clears."""

    value_a: str | None = None
    value_b: str | None = None


@router.get("")
def get_catalog(ctx: OpContext, autosaver: Autosaver, slug: str, request: Request):
    result = _get(ctx, slug, autosaver=autosaver)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.put("")
def save_catalog(
    ctx: OpContext,
    autosaver: Autosaver,
    slug: str,
    body: CatalogSaveRequest,
    request: Request,
    dry_run: bool = Query(False, description="Validate without saving"),
):
    """Replace the catalog. Uniqueness and the no-match rule are re-checked."""
    ctx.dry_run = dry_run
    entries: list[dict[str, Any]] = [e.model_dump(exclude_none=True) for e in body.entries]
    result = _save(ctx, SaveCatalogRequest(namespace=slug, entries=entries), autosaver=autosaver)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.patch("/entries/{b_key}")
def update_catalog_entry(
    ctx: OpContext,
    autosaver: Autosaver,
    slug: str,
    b_key: str,
    body: CatalogEntryUpdateRequest,
    request: Request,
):
    """Upsert one entry; the save is coalesced with other edits."""
    result = _update(
        ctx,
        UpdateCatalogEntryRequest(namespace=slug, b_key=b_key, value_a=body.value_a, value_b=body.value_b),
        autosaver=autosaver,
    )
    if not result.success:
        return _handle_error(result, request)
    return _success(result)
