"""Tests for the SQLite adapter, transactions and schema helpers."""

import pytest

from langfactory.core.errors import ConcurrentModificationError
from langfactory.core.protocols import Connection
from langfactory.core.schema import CORE_DDL, create_core_tables, namespace_ddl, table_names
from langfactory.core.sqlite_conn import SqliteConnection, transaction


def _tables(conn) -> set[str]:
    conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row["name"] for row in conn.fetchall()}


class TestSqliteConnection:
    def test_satisfies_protocol(self):
        conn = SqliteConnection()
        assert isinstance(conn, Connection)
        conn.close()

    def test_file_database_uses_wal(self, conn):
        conn.execute("PRAGMA journal_mode")
        assert conn.fetchone()[0].lower() == "wal"


class TestTransaction:
    def test_commits_on_success(self, conn):
        conn.execute("CREATE TABLE t (k TEXT PRIMARY KEY)")
        with transaction(conn):
            conn.execute("INSERT INTO t VALUES ('a')")
        assert not conn.in_transaction
        conn.execute("SELECT COUNT(*) FROM t")
        assert conn.fetchone()[0] == 1

    def test_rolls_back_on_error(self, conn):
        conn.execute("CREATE TABLE t (k TEXT PRIMARY KEY)")
        with pytest.raises(RuntimeError):
            with transaction(conn):
                conn.execute("INSERT INTO t VALUES ('a')")
                raise RuntimeError("abort")
        conn.execute("SELECT COUNT(*) FROM t")
        assert conn.fetchone()[0] == 0

    def test_integrity_error_is_translated(self, conn):
        conn.execute("CREATE TABLE t (k TEXT PRIMARY KEY)")
        conn.execute("INSERT INTO t VALUES ('a')")
        with pytest.raises(ConcurrentModificationError):
            with transaction(conn):
                conn.execute("INSERT INTO t VALUES ('a')")
        assert not conn.in_transaction


class TestSchema:
    def test_table_names(self):
        names = table_names("fr-demo")
        assert names.active == "text_reason_fr-demo"
        assert names.archive == "text_reason_fr-demo_archive"
        assert names.published == "mv_text_reason_fr-demo_published"

    def test_ddl_is_idempotent(self, conn):
        create_core_tables(conn)
        for _ in range(2):
            for ddl in namespace_ddl("fr-demo"):
                conn.execute(ddl)
        assert {"namespaces", "catalogs", "text_reason_fr-demo", "text_reason_fr-demo_archive"} <= _tables(conn)

    def test_core_tables_match_ddl(self, conn):
        create_core_tables(conn)
        assert set(CORE_DDL) == {"namespaces", "catalogs"}
        assert set(CORE_DDL) <= _tables(conn)
