"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from langfactory.api.deps import Conn
from langfactory.api.middleware.errors import problem_response
from langfactory.api.schemas.common import SuccessResponse
from langfactory.core.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
def health(request: Request, conn: Conn):
    """Report the service as healthy when the database answers."""
    try:
        conn.execute("SELECT 1")
        conn.fetchone()
    except Exception as exc:
        logger.warning("health_check_failed", error=str(exc))
        return problem_response(status=503, title="Database unavailable", detail=str(exc))
    return SuccessResponse(data={"status": "ok", "version": request.app.version})
