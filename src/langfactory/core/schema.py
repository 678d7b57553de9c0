"""
Storage schema.

Two shared tables hold namespace registrations and catalog snapshots. Each
namespace then owns three tables, created together when it is provisioned:

Architecture:
    ::

        Core (CORE_DDL):
        ┌────────────────────────────────────────────────────────────┐
        │ namespaces   → one row per reason slug                     │
        │ catalogs     → latest catalog snapshot per namespace       │
        └────────────────────────────────────────────────────────────┘

        Per namespace (namespace_ddl(slug)):
        ┌────────────────────────────────────────────────────────────┐
        │ text_reason_<slug>                  active records          │
        │     UNIQUE (identifiercode, language, tenant)              │
        │ text_reason_<slug>_archive          superseded values       │
        │ mv_text_reason_<slug>_published     published projection    │
        └────────────────────────────────────────────────────────────┘

    Tenant is stored as ``''`` when absent so the unique constraint applies
    to tenant-less records too.

Examples:
    >>> from langfactory.core.schema import create_core_tables, table_names
    >>> create_core_tables(conn)
    >>> table_names("animals").active
    'text_reason_animals'
"""

from __future__ import annotations

from dataclasses import dataclass

from langfactory.core.protocols import Connection
from langfactory.core.repository import quote_ident

CORE_DDL = {
    "namespaces": """
        CREATE TABLE IF NOT EXISTS namespaces (
            slug TEXT PRIMARY KEY,
            language TEXT NOT NULL DEFAULT 'en',
            tenant TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'active',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            created_by TEXT,
            updated_by TEXT,
            meta TEXT NOT NULL DEFAULT '{}'
        )
    """,
    "catalogs": """
        CREATE TABLE IF NOT EXISTS catalogs (
            namespace TEXT PRIMARY KEY REFERENCES namespaces(slug),
            items TEXT NOT NULL DEFAULT '[]',
            updated_at TEXT NOT NULL,
            updated_by TEXT
        )
    """,
}


@dataclass(frozen=True, slots=True)
class NamespaceTables:
    active: str
    archive: str
    published: str


def table_names(slug: str) -> NamespaceTables:
    """Table names owned by a namespace (unquoted)."""
    return NamespaceTables(
        active=f"text_reason_{slug}",
        archive=f"text_reason_{slug}_archive",
        published=f"mv_text_reason_{slug}_published",
    )


def namespace_ddl(slug: str) -> list[str]:
    """CREATE statements for a namespace; every statement is idempotent.

    ``slug`` must already be validated against the slug pattern.
    """
    t = table_names(slug)
    active, archive, published = quote_ident(t.active), quote_ident(t.archive), quote_ident(t.published)
    return [
        f"""
        CREATE TABLE IF NOT EXISTS {active} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            identifiercode TEXT NOT NULL,
            output_value TEXT NOT NULL,
            reason_slug TEXT NOT NULL,
            language TEXT NOT NULL DEFAULT 'en',
            tenant TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'active',
            version INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            updated_by TEXT,
            meta TEXT NOT NULL DEFAULT '{{}}',
            UNIQUE (identifiercode, language, tenant)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {archive} (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            record_id INTEGER NOT NULL,
            identifiercode TEXT NOT NULL,
            output_value TEXT NOT NULL,
            version INTEGER NOT NULL,
            language TEXT NOT NULL DEFAULT 'en',
            tenant TEXT NOT NULL DEFAULT '',
            archived_at TEXT NOT NULL,
            archived_by_reason TEXT NOT NULL,
            batch_id TEXT
        )
        """,
        f"""
        CREATE INDEX IF NOT EXISTS {quote_ident(t.archive + '_identifier_idx')}
            ON {archive} (identifiercode, archived_at)
        """,
        f"""
        CREATE TABLE IF NOT EXISTS {published} (
            identifiercode TEXT NOT NULL,
            output_value TEXT NOT NULL,
            language TEXT NOT NULL,
            tenant TEXT NOT NULL DEFAULT '',
            refreshed_at TEXT NOT NULL,
            PRIMARY KEY (identifiercode, language, tenant)
        )
        """,
    ]


def create_core_tables(conn: Connection) -> None:
    """
    Create the shared tables.

    Safe to call multiple times (CREATE IF NOT EXISTS).
    """
    for _name, ddl in CORE_DDL.items():
        conn.execute(ddl)
    conn.commit()


__all__ = [
    "CORE_DDL",
    "NamespaceTables",
    "table_names",
    "namespace_ddl",
    "create_core_tables",
]
