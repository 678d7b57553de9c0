"""Base repository over the :class:`~langfactory.core.protocols.Connection` protocol.

Architecture::

    ┌───────────────────────────────────────────────┐
    │               BaseRepository                  │
    │   conn: Connection                            │
    │   execute(sql, params)     → cursor           │
    │   query(sql, params)       → list[dict]       │
    │   query_one(sql, params)   → dict | None      │
    │   insert(table, data)      → cursor           │
    └───────────────────────────────────────────────┘
"""

from __future__ import annotations

from typing import Any

from langfactory.core.protocols import Connection


def quote_ident(name: str) -> str:
    """Quote a table name for SQL; namespace slugs may contain ``-``."""
    return '"' + name.replace('"', '""') + '"'


class BaseRepository:
    """Shared helpers for data-access repositories."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor."""
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts."""
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if not rows:
            return []
        try:
            return [dict(row) for row in rows]
        except (TypeError, ValueError):
            pass
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row, strict=False)) for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    def insert(self, table: str, data: dict[str, Any]) -> Any:
        """Insert a single row from a dict; ``table`` is quoted."""
        columns = list(data.keys())
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {quote_ident(table)} ({', '.join(columns)}) VALUES ({placeholders})"
        return self.conn.execute(sql, tuple(data.values()))


__all__ = ["BaseRepository", "quote_ident"]
