"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument. The context carries the database connection, an optional
connection factory for work that fans out to threads, the active settings,
caller identity and the dry-run flag.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from langfactory.core.protocols import Connection, ConnectionFactory
from langfactory.core.settings import FactorySettings
from langfactory.core.sqlite_conn import SqliteConnection


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        conn: Database connection satisfying :class:`langfactory.core.protocols.Connection`.
        settings: Catalog rules, publish retry policy and worker count.
        connect: Opens additional connections (parallel publish workers).
        request_id: Unique ID for this operation invocation (auto-generated).
        caller: Origin of the request: ``"api"``, ``"cli"`` or ``"sdk"``.
        user: Optional editor identity, recorded as ``updated_by``.
        dry_run: When ``True``, operations return a preview without side effects.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    conn: Connection
    settings: FactorySettings = field(default_factory=FactorySettings)
    connect: ConnectionFactory | None = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    user: str | None = None
    dry_run: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


def connection_factory(settings: FactorySettings) -> ConnectionFactory | None:
    """Factory opening new connections to the configured database.

    ``None`` for in-memory databases, which cannot be shared between
    connections.
    """
    if settings.database_url == ":memory:":
        return None

    def connect() -> SqliteConnection:
        return SqliteConnection(settings.database_url, busy_timeout=settings.busy_timeout)

    return connect
