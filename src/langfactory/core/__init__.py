"""
Core primitives: errors, logging, settings, persistence and retry.
"""

from langfactory.core.errors import (
    ConcurrentModificationError,
    ErrorCategory,
    FactoryError,
    NotFoundError,
    TransientError,
    ValidationError,
    is_retryable,
)
from langfactory.core.logging import configure_logging, get_logger
from langfactory.core.protocols import Connection
from langfactory.core.settings import FactorySettings
from langfactory.core.sqlite_conn import SqliteConnection, transaction

__all__ = [
    "ConcurrentModificationError",
    "Connection",
    "ErrorCategory",
    "FactoryError",
    "FactorySettings",
    "NotFoundError",
    "SqliteConnection",
    "TransientError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "is_retryable",
    "transaction",
]
