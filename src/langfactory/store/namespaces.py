"""Namespace provisioning.

``ensure`` is idempotent: the registration row and all per-namespace tables
are created with ``IF NOT EXISTS`` semantics inside one ``BEGIN IMMEDIATE``
transaction, so concurrent callers both succeed and exactly one reports
``created``.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from langfactory.core.errors import InvalidNamespaceSlugError, NamespaceNotFoundError
from langfactory.core.logging import get_logger
from langfactory.core.repository import BaseRepository
from langfactory.core.schema import create_core_tables, namespace_ddl
from langfactory.core.sqlite_conn import transaction
from langfactory.core.timestamps import utc_now_iso
from langfactory.domain.models import Namespace

logger = get_logger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9_-]+$")
SLUG_MAX_LENGTH = 64


class EnsureStatus(str, Enum):
    CREATED = "created"
    EXISTS = "exists"


def validate_slug(slug: Any) -> str:
    if not isinstance(slug, str) or len(slug) > SLUG_MAX_LENGTH or not SLUG_PATTERN.match(slug):
        raise InvalidNamespaceSlugError(str(slug))
    return slug


def _row_to_namespace(row: dict[str, Any]) -> Namespace:
    return Namespace(
        slug=row["slug"],
        language=row["language"],
        tenant=row["tenant"] or "",
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        created_by=row["created_by"],
        updated_by=row["updated_by"],
        meta=json.loads(row["meta"] or "{}"),
    )


class NamespaceRepository(BaseRepository):
    """Registration and provisioning of namespaces."""

    def ensure(
        self,
        slug: str,
        *,
        language: str = "en",
        tenant: str | None = None,
        created_by: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[Namespace, EnsureStatus]:
        """Register ``slug`` and create its tables if missing.

        An existing namespace keeps its language, tenant and meta; only
        ``updated_at``/``updated_by`` move.
        """
        validate_slug(slug)
        create_core_tables(self.conn)
        now = utc_now_iso()

        with transaction(self.conn):
            existing = self.query_one("SELECT slug FROM namespaces WHERE slug = ?", (slug,))
            if existing is None:
                self.insert(
                    "namespaces",
                    {
                        "slug": slug,
                        "language": language,
                        "tenant": tenant or "",
                        "status": "active",
                        "created_at": now,
                        "updated_at": now,
                        "created_by": created_by,
                        "updated_by": created_by,
                        "meta": json.dumps(meta or {}),
                    },
                )
                status = EnsureStatus.CREATED
            else:
                self.execute(
                    "UPDATE namespaces SET updated_at = ?, updated_by = COALESCE(?, updated_by) WHERE slug = ?",
                    (now, created_by, slug),
                )
                status = EnsureStatus.EXISTS
            for ddl in namespace_ddl(slug):
                self.execute(ddl)

        logger.info("namespace_ensured", namespace=slug, status=status.value)
        return self.get(slug), status

    def get(self, slug: str) -> Namespace:
        validate_slug(slug)
        create_core_tables(self.conn)
        row = self.query_one("SELECT * FROM namespaces WHERE slug = ?", (slug,))
        if row is None:
            raise NamespaceNotFoundError(slug)
        return _row_to_namespace(row)

    def list_all(self) -> list[Namespace]:
        create_core_tables(self.conn)
        return [_row_to_namespace(r) for r in self.query("SELECT * FROM namespaces ORDER BY slug")]
