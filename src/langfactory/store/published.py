"""
Versioned store of published identifiers.

Each namespace keeps one active record per ``(identifier, language,
tenant)``. Changing a value appends the old one to the archive and bumps the
version with a compare-and-swap, all inside one ``BEGIN IMMEDIATE``
transaction. The published projection is rebuilt on demand from active
records.

Architecture:
    ::

        upsert(identifier, value)
          BEGIN IMMEDIATE
            SELECT id, output_value, version            ── absent  → INSERT v1
                                                        ── same    → no-op
                                                        ── changed ↓
            INSERT INTO archive (old value, old version)
            UPDATE ... SET version = version + 1 WHERE id = ? AND version = ?
          COMMIT

        refresh_view()
          BEGIN IMMEDIATE
            DELETE FROM mv_...; INSERT INTO mv_... SELECT ... WHERE status = 'active'
          COMMIT
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from langfactory.core.errors import ConcurrentModificationError
from langfactory.core.logging import get_logger
from langfactory.core.protocols import Connection
from langfactory.core.repository import BaseRepository, quote_ident
from langfactory.core.schema import table_names
from langfactory.core.sqlite_conn import transaction
from langfactory.core.timestamps import utc_now_iso
from langfactory.domain.models import ArchiveRecord, Namespace, PublishedRecord

logger = get_logger(__name__)


class UpsertStatus(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True, slots=True)
class UpsertResult:
    status: UpsertStatus
    version: int


@dataclass(frozen=True, slots=True)
class RefreshResult:
    namespace: str
    rows: int
    refreshed_at: str


class PublishedRepository(BaseRepository):
    """Active, archive and published tables of one namespace."""

    def __init__(self, conn: Connection, namespace: Namespace) -> None:
        super().__init__(conn)
        self.namespace = namespace
        tables = table_names(namespace.slug)
        self._active = quote_ident(tables.active)
        self._archive = quote_ident(tables.archive)
        self._published = quote_ident(tables.published)

    @property
    def _scope(self) -> tuple[str, str]:
        return self.namespace.language, self.namespace.tenant or ""

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def upsert(
        self,
        identifier: str,
        value: str,
        *,
        reason: str,
        updated_by: str | None = None,
        batch_id: str | None = None,
    ) -> UpsertResult:
        """Make ``value`` the active value of ``identifier``.

        Raises:
            ConcurrentModificationError: the record changed between read and
                write, or a concurrent insert won the unique constraint.
            StoreUnavailableError: the database stayed locked past its busy
                timeout.
        """
        language, tenant = self._scope
        with transaction(self.conn):
            current = self.query_one(
                f"SELECT id, output_value, version FROM {self._active} "
                "WHERE identifiercode = ? AND language = ? AND tenant = ?",
                (identifier, language, tenant),
            )
            now = utc_now_iso()

            if current is None:
                self.execute(
                    f"INSERT INTO {self._active} "
                    "(identifiercode, output_value, reason_slug, language, tenant, status, version, "
                    "created_at, updated_at, updated_by) VALUES (?, ?, ?, ?, ?, 'active', 1, ?, ?, ?)",
                    (identifier, value, self.namespace.slug, language, tenant, now, now, updated_by),
                )
                return UpsertResult(UpsertStatus.INSERTED, 1)

            if current["output_value"] == value:
                return UpsertResult(UpsertStatus.UNCHANGED, current["version"])

            self.execute(
                f"INSERT INTO {self._archive} "
                "(record_id, identifiercode, output_value, version, language, tenant, "
                "archived_at, archived_by_reason, batch_id) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    current["id"],
                    identifier,
                    current["output_value"],
                    current["version"],
                    language,
                    tenant,
                    now,
                    reason,
                    batch_id,
                ),
            )
            cursor = self.execute(
                f"UPDATE {self._active} SET output_value = ?, version = version + 1, "
                "status = 'active', updated_at = ?, updated_by = ? WHERE id = ? AND version = ?",
                (value, now, updated_by, current["id"], current["version"]),
            )
            if cursor.rowcount != 1:
                raise ConcurrentModificationError(
                    f"{identifier!r} changed while it was being published"
                ).with_context(namespace=self.namespace.slug, identifier=identifier)
            return UpsertResult(UpsertStatus.UPDATED, current["version"] + 1)

    def refresh_view(self) -> RefreshResult:
        """Rebuild the published projection from active records."""
        refreshed_at = utc_now_iso()
        with transaction(self.conn):
            self.execute(f"DELETE FROM {self._published}")
            self.execute(
                f"INSERT INTO {self._published} "
                "(identifiercode, output_value, language, tenant, refreshed_at) "
                f"SELECT identifiercode, output_value, language, tenant, ? FROM {self._active} "
                "WHERE status = 'active'",
                (refreshed_at,),
            )
            row = self.query_one(f"SELECT COUNT(*) AS n FROM {self._published}")
        count = row["n"] if row else 0
        logger.info("published_view_refreshed", namespace=self.namespace.slug, rows=count)
        return RefreshResult(self.namespace.slug, count, refreshed_at)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_active(self, identifier: str) -> PublishedRecord | None:
        language, tenant = self._scope
        row = self.query_one(
            f"SELECT * FROM {self._active} WHERE identifiercode = ? AND language = ? AND tenant = ?",
            (identifier, language, tenant),
        )
        return _row_to_record(row) if row else None

    def list_active(self) -> list[PublishedRecord]:
        rows = self.query(f"SELECT * FROM {self._active} ORDER BY identifiercode")
        return [_row_to_record(r) for r in rows]

    def list_published(self) -> list[dict[str, str]]:
        """Rows of the published projection as of its last refresh."""
        rows = self.query(
            f"SELECT identifiercode, output_value, language, tenant, refreshed_at "
            f"FROM {self._published} ORDER BY identifiercode"
        )
        return [
            {
                "identifier": r["identifiercode"],
                "value": r["output_value"],
                "language": r["language"],
                "tenant": r["tenant"] or None,
                "refreshed_at": r["refreshed_at"],
            }
            for r in rows
        ]

    def list_archive(self, identifier: str | None = None, *, limit: int = 100, offset: int = 0) -> list[ArchiveRecord]:
        sql = f"SELECT * FROM {self._archive}"
        params: tuple = ()
        if identifier is not None:
            sql += " WHERE identifiercode = ?"
            params = (identifier,)
        sql += " ORDER BY id LIMIT ? OFFSET ?"
        rows = self.query(sql, params + (limit, offset))
        return [
            ArchiveRecord(
                identifier=r["identifiercode"],
                value=r["output_value"],
                version=r["version"],
                archived_at=r["archived_at"],
                reason=r["archived_by_reason"],
                batch_id=r["batch_id"],
                language=r["language"],
                tenant=r["tenant"] or "",
            )
            for r in rows
        ]

    def count_archive(self, identifier: str | None = None) -> int:
        if identifier is None:
            row = self.query_one(f"SELECT COUNT(*) AS n FROM {self._archive}")
        else:
            row = self.query_one(
                f"SELECT COUNT(*) AS n FROM {self._archive} WHERE identifiercode = ?", (identifier,)
            )
        return row["n"] if row else 0


def _row_to_record(row: dict) -> PublishedRecord:
    return PublishedRecord(
        identifier=row["identifiercode"],
        value=row["output_value"],
        version=row["version"],
        language=row["language"],
        tenant=row["tenant"] or "",
        status=row["status"],
        updated_at=row["updated_at"],
        updated_by=row["updated_by"],
    )
