"""
Namespace endpoints.

POST /namespaces         create (idempotent: 201 when created, 200 when it exists)
GET  /namespaces         list
GET  /namespaces/{slug}  detail
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, Field

from langfactory.api.deps import OpContext
from langfactory.api.utils import _handle_error, _success
from langfactory.ops.namespaces import create_namespace as _create
from langfactory.ops.namespaces import get_namespace as _get
from langfactory.ops.namespaces import list_namespaces as _list
from langfactory.ops.requests import CreateNamespaceRequest

router = APIRouter(prefix="/namespaces")


class NamespaceCreateRequest(BaseModel):
    """Request body for provisioning a namespace."""

    slug: str = Field(..., description="Namespace slug, lowercase letters, digits, '_' and '-'")
    language: str | None = Field(default=None, description="Language scope; defaults to the configured language")
    tenant: str | None = Field(default=None, description="Optional tenant scope")
    meta: dict[str, Any] = Field(default_factory=dict, description="Freeform metadata")


@router.post("", status_code=201)
def create_namespace(ctx: OpContext, body: NamespaceCreateRequest, request: Request, response: Response):
    """Provision a namespace and its record tables."""
    result = _create(
        ctx,
        CreateNamespaceRequest(slug=body.slug, language=body.language, tenant=body.tenant, meta=body.meta),
    )
    if not result.success:
        return _handle_error(result, request)
    if result.data and result.data.get("status") == "exists":
        response.status_code = 200
    return _success(result)


@router.get("")
def list_namespaces(ctx: OpContext, request: Request):
    result = _list(ctx)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)


@router.get("/{slug}")
def get_namespace(ctx: OpContext, slug: str, request: Request):
    result = _get(ctx, slug)
    if not result.success:
        return _handle_error(result, request)
    return _success(result)
