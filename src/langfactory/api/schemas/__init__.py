"""Pydantic schemas shared by the API routers."""

from langfactory.api.schemas.common import ErrorDetail, ProblemDetail, SuccessResponse

__all__ = ["ErrorDetail", "ProblemDetail", "SuccessResponse"]
