"""SQLite connection adapter.

Wraps a raw :class:`sqlite3.Connection` to satisfy the
:class:`~langfactory.core.protocols.Connection` protocol.

The adapter opens the database in autocommit mode (``isolation_level=None``)
so that every write path controls its own transaction boundary with
:func:`transaction`, which issues ``BEGIN IMMEDIATE`` and therefore takes
the write lock before the first read of a read-modify-write cycle.

Usage::

    from langfactory.core.sqlite_conn import SqliteConnection, transaction

    conn = SqliteConnection("factory.db", busy_timeout=5.0)
    with transaction(conn):
        conn.execute("INSERT INTO t VALUES (?)", (1,))
    conn.close()
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from langfactory.core.errors import (
    ConcurrentModificationError,
    FactoryError,
    StoreUnavailableError,
)
from langfactory.core.protocols import Connection


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Maintains a single cursor so that ``execute`` / ``fetchone`` /
    ``fetchall`` operate on the same result set. One instance must not be
    shared between threads while a statement is in flight; the publish
    pipeline opens one connection per worker.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        busy_timeout: float = 5.0,
        row_factory: Any = sqlite3.Row,
    ) -> None:
        self.path = path
        self._conn = sqlite3.connect(
            path,
            timeout=busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        self._conn.row_factory = row_factory
        self._cursor = self._conn.cursor()
        if path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self._cursor.execute(sql, params)
        return self._cursor

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        self._cursor.executemany(sql, params)
        return self._cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("COMMIT")

    def rollback(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")

    def close(self) -> None:
        self._conn.close()

    # -- convenience -------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self.path!r})"


def translate_sqlite_error(exc: sqlite3.Error) -> FactoryError:
    """Map a driver exception onto the factory's transient error types.

    Lock and busy conditions become :class:`StoreUnavailableError`; a
    unique-constraint race becomes :class:`ConcurrentModificationError`.
    Anything else is wrapped as a non-retryable internal error.
    """
    text = str(exc).lower()
    if isinstance(exc, sqlite3.IntegrityError):
        return ConcurrentModificationError(f"Constraint violated by concurrent writer: {exc}", cause=exc)
    if isinstance(exc, sqlite3.OperationalError) and ("locked" in text or "busy" in text):
        return StoreUnavailableError(f"Store unavailable: {exc}", cause=exc)
    return FactoryError(f"Database error: {exc}", cause=exc)


@contextmanager
def transaction(conn: Connection, *, immediate: bool = True) -> Iterator[Connection]:
    """Run a block inside one transaction, translating driver errors.

    Commits on success, rolls back on any exception. ``sqlite3`` errors are
    re-raised as :class:`FactoryError` subclasses so callers can consult
    ``retryable`` without knowing the driver.
    """
    try:
        conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    except sqlite3.Error as exc:
        raise translate_sqlite_error(exc) from exc
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise translate_sqlite_error(exc) from exc
    except BaseException:
        conn.rollback()
        raise


__all__ = ["SqliteConnection", "transaction", "translate_sqlite_error"]
