"""
Shared API router utilities.

- ``_handle_error()`` converts a failed OperationResult to a ``problem_response``
- ``_success()`` wraps a successful OperationResult in the success envelope
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from langfactory.api.middleware.errors import problem_response, status_for_error_code
from langfactory.api.schemas.common import SuccessResponse
from langfactory.ops.result import OperationResult


def _handle_error(result: OperationResult[Any], request: Request | None = None):
    """Convert a failed ``OperationResult`` into a Problem Details response.

    The error code picks the HTTP status; the error message becomes the
    problem title and the code its detail.
    """
    if result.error is None:
        return problem_response(status=500, title="Operation failed", detail="INTERNAL")

    error = result.error
    errors = []
    if "field" in error.details:
        errors.append({"code": error.code, "message": error.message, "field": error.details.get("field")})
    return problem_response(
        status=status_for_error_code(error.code),
        title=error.message,
        detail=error.code,
        instance=str(request.url.path) if request is not None else "",
        errors=errors,
    )


def _success(result: OperationResult[Any]) -> SuccessResponse[Any]:
    return SuccessResponse(data=result.data, elapsed_ms=result.elapsed_ms, warnings=result.warnings)
