"""
Canonical protocols for langfactory.

``Connection`` is the only database contract the store, publish and ops
layers depend on. ``SqliteConnection`` satisfies it; tests substitute
in-memory databases or mocks with the same shape.

Tags:
    protocol, connection, database, contracts
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface.

    Architecture:
        ::

            ┌────────────────────────────────────────────────────────┐
            │ execute(sql, params)   → Execute single statement      │
            │ executemany(sql, list) → Execute for multiple params   │
            │ fetchone()             → Get one result row            │
            │ fetchall()             → Get all result rows           │
            │ commit()               → Commit transaction            │
            │ rollback()             → Rollback transaction          │
            └────────────────────────────────────────────────────────┘

    Transactions are opened explicitly with ``BEGIN IMMEDIATE`` through
    :func:`langfactory.core.sqlite_conn.transaction`.
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


ConnectionFactory = Callable[[], Connection]
"""Zero-argument callable opening a fresh connection (one per worker thread)."""


__all__ = ["Connection", "ConnectionFactory"]
