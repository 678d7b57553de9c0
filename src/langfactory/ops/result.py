"""
Operation result envelope.

:class:`OperationResult` is the typed success/failure envelope every
operation function returns. It is designed for API/CLI consumers and carries
*warnings*, *elapsed_ms* and *metadata* alongside the payload.
:func:`fail_from_error` turns a :class:`FactoryError` into the matching
machine-readable code.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from langfactory.core.errors import (
    ConcurrentModificationError,
    ErrorCategory,
    FactoryError,
    MalformedRecordError,
    NotFoundError,
    TransientError,
    ValidationError,
)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class OperationError:
    """Structured error detail for failed operations.

    Attributes:
        code: Machine-readable code (``NOT_FOUND``, ``VALIDATION_FAILED``, ...).
        message: Human-readable description of the error.
        category: Optional :class:`ErrorCategory` for routing.
        details: Extra key/value context (field names, offending value).
        retryable: Whether the caller should retry the operation.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False


@dataclass
class OperationResult(Generic[T]):
    """Envelope returned by every operation function.

    Factory methods :meth:`ok` and :meth:`fail` should be used instead of
    the constructor directly.
    """

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        """Create a successful result."""
        return cls(
            success=True,
            data=data,
            warnings=warnings or [],
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        """Create a failed result."""
        return cls(
            success=False,
            error=OperationError(
                code=code,
                message=message,
                category=category,
                details=details or {},
                retryable=retryable,
            ),
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict (for JSON output)."""
        d: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            d["data"] = self.data
        if self.error is not None:
            d["error"] = {
                "code": self.error.code,
                "message": self.error.message,
                "retryable": self.error.retryable,
            }
            if self.error.details:
                d["error"]["details"] = self.error.details
        if self.warnings:
            d["warnings"] = self.warnings
        if self.elapsed_ms:
            d["elapsed_ms"] = round(self.elapsed_ms, 2)
        if self.metadata:
            d["metadata"] = self.metadata
        return d


def error_code(error: FactoryError) -> str:
    """Machine-readable code for a factory error."""
    if isinstance(error, MalformedRecordError):
        return "INVALID_INPUT"
    if isinstance(error, ValidationError):
        return "VALIDATION_FAILED"
    if isinstance(error, NotFoundError):
        return "NOT_FOUND"
    if isinstance(error, ConcurrentModificationError):
        return "CONFLICT"
    if isinstance(error, TransientError):
        return "UNAVAILABLE"
    return "INTERNAL"


def fail_from_error(error: FactoryError, *, elapsed_ms: float = 0.0) -> OperationResult[Any]:
    details = {k: v for k, v in error.to_dict().items() if k not in ("message", "category", "retryable")}
    return OperationResult.fail(
        error_code(error),
        error.message,
        category=error.category,
        details=details,
        retryable=error.retryable,
        elapsed_ms=elapsed_ms,
    )


class _Timer:
    """Minimal stopwatch for timing operations."""

    __slots__ = ("_start",)

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000


def start_timer() -> _Timer:
    """Return a lightweight timer.  Use ``timer.elapsed_ms`` when done."""
    return _Timer()
