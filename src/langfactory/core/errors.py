"""
Structured error types for langfactory.

Every failure the factory can report is a typed error carrying its category,
retry semantics and structured context. The publish pipeline decides whether
to retry an identifier purely from ``error.retryable``; the operations layer
maps error classes to machine-readable result codes.

Manifesto:
    - **Typed Error Hierarchy:** One class per rejected editor action
    - **Explicit Retry Semantics:** Only store contention is retryable
    - **Rich Context:** Errors carry namespace/identifier metadata for logs
    - **Error Chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      FactoryError                               │
        │  (category, retryable, retry_after, context, cause)             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  ValidationError (VALIDATION, never retried)                    │
        │    DuplicateValueError      MatchingPairError                   │
        │    DuplicateStepError       DuplicateSequenceError              │
        │    EmptySequenceError       InvalidNamespaceSlugError           │
        │    MalformedRecordError                                         │
        │                                                                 │
        │  NotFoundError (NOT_FOUND)                                      │
        │    SequenceNotFoundError    EntryNotFoundError                  │
        │    NamespaceNotFoundError                                       │
        │                                                                 │
        │  TransientError (DATABASE, retryable)                           │
        │    StoreUnavailableError    ConcurrentModificationError         │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = DuplicateValueError("cat", owner="column B-2")
    >>> error.retryable
    False
    >>> StoreUnavailableError("database is locked").retryable
    True

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for routing and result-code mapping."""

    VALIDATION = "VALIDATION"     # Editor input rejected
    NOT_FOUND = "NOT_FOUND"       # Referenced record missing
    DATABASE = "DATABASE"         # Store contention, lock, driver
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        namespace: Namespace slug the failing operation targeted
        identifier: Derived identifier being published
        seq_key: Sequence the failing record belongs to
        b_key: Catalog key involved in the failure
        batch_id: Publish batch identifier
        metadata: Additional key-value pairs
    """

    namespace: str | None = None
    identifier: str | None = None
    seq_key: str | None = None
    b_key: str | None = None
    batch_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["namespace", "identifier", "seq_key", "b_key", "batch_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class FactoryError(Exception):
    """
    Base exception for all langfactory errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely pass them explicitly.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: float | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FactoryError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreUnavailableError("locked").with_context(
                namespace="animals", identifier="cat-E-1"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS (never retryable)
# =============================================================================


class ValidationError(FactoryError):
    """
    Editor input rejected.

    Never retryable - the input must be changed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class DuplicateValueError(ValidationError):
    """A catalog value is already used by another entry."""

    def __init__(self, value: str, *, owner: str | None = None, field: str | None = None):
        self.owner = owner
        message = f"Value {value!r} is already used"
        if owner:
            message += f" by {owner}"
        super().__init__(message, field=field, value=value, constraint="unique_value")
        if owner:
            self.context.b_key = owner


class MatchingPairError(ValidationError):
    """Both values of one catalog entry are equal while no-match is enforced."""

    def __init__(self, b_key: str, value: str):
        super().__init__(
            f"{b_key}: value_a and value_b must differ (got {value!r} for both)",
            value=value,
            constraint="no_match",
        )
        self.context.b_key = b_key


class DuplicateStepError(ValidationError):
    """A sequence path repeats a catalog key."""

    def __init__(self, b_key: str):
        super().__init__(
            f"Step {b_key!r} appears more than once in the path",
            field="path",
            value=b_key,
            constraint="distinct_steps",
        )
        self.context.b_key = b_key


class DuplicateSequenceError(ValidationError):
    """An identical ordered path is already stored."""

    def __init__(self, seq_key: str):
        super().__init__(
            f"Sequence {seq_key!r} already exists",
            field="path",
            value=seq_key,
            constraint="unique_path",
        )
        self.context.seq_key = seq_key


class EmptySequenceError(ValidationError):
    """A sequence path has no steps."""

    def __init__(self) -> None:
        super().__init__("A sequence needs at least one step", field="path", constraint="non_empty")


class InvalidNamespaceSlugError(ValidationError):
    """Namespace slug fails the ``^[a-z0-9_-]+$`` / 64-char rule."""

    def __init__(self, slug: str):
        super().__init__(
            f"Invalid namespace slug {slug!r}: use 1-64 of a-z, 0-9, '_' or '-'",
            field="slug",
            value=slug,
            constraint="slug_format",
        )


class MalformedRecordError(ValidationError):
    """A persisted or submitted record is missing fields or has wrong types."""


# =============================================================================
# NOT FOUND
# =============================================================================


class NotFoundError(FactoryError):
    """Referenced record does not exist."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


class SequenceNotFoundError(NotFoundError):
    """No sequence stored at the requested index or key."""

    def __init__(self, ref: int | str):
        self.ref = ref
        super().__init__(f"Sequence not found: {ref}")


class EntryNotFoundError(NotFoundError):
    """No entry block or row at the requested coordinates."""

    def __init__(self, seq_key: str, block: int, row_index: int | None = None):
        self.block = block
        self.row_index = row_index
        where = f"block {block}" if row_index is None else f"block {block} row {row_index}"
        super().__init__(f"Entry not found: {where} of {seq_key!r}")
        self.context.seq_key = seq_key


class NamespaceNotFoundError(NotFoundError):
    """Namespace has not been provisioned."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Namespace not found: {slug}")
        self.context.namespace = slug


# =============================================================================
# TRANSIENT ERRORS (retryable)
# =============================================================================


class TransientError(FactoryError):
    """Temporary store condition that may succeed on retry."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class StoreUnavailableError(TransientError):
    """Database locked, busy or otherwise unreachable."""


class ConcurrentModificationError(TransientError):
    """Another writer changed the record between read and compare-and-swap."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, FactoryError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, FactoryError):
        return error.category
    if isinstance(error, (KeyError, TypeError, ValueError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FactoryError",
    "ValidationError",
    "DuplicateValueError",
    "MatchingPairError",
    "DuplicateStepError",
    "DuplicateSequenceError",
    "EmptySequenceError",
    "InvalidNamespaceSlugError",
    "MalformedRecordError",
    "NotFoundError",
    "SequenceNotFoundError",
    "EntryNotFoundError",
    "NamespaceNotFoundError",
    "TransientError",
    "StoreUnavailableError",
    "ConcurrentModificationError",
    "is_retryable",
    "categorize_error",
]
