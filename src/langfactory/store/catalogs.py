"""Catalog persistence: one JSON snapshot of entries per namespace."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Iterable

from langfactory.core.errors import MalformedRecordError
from langfactory.core.logging import get_logger
from langfactory.core.protocols import ConnectionFactory
from langfactory.core.repository import BaseRepository
from langfactory.core.sqlite_conn import transaction
from langfactory.core.timestamps import utc_now_iso
from langfactory.domain.models import CatalogEntry
from langfactory.store.pending import PendingBatch

logger = get_logger(__name__)


class CatalogRepository(BaseRepository):
    """Reads and writes ``catalogs`` rows."""

    def load(self, namespace: str) -> list[CatalogEntry]:
        row = self.query_one("SELECT items FROM catalogs WHERE namespace = ?", (namespace,))
        if row is None:
            return []
        try:
            items = json.loads(row["items"])
        except json.JSONDecodeError as exc:
            raise MalformedRecordError(f"Stored catalog for {namespace!r} is not valid JSON", cause=exc) from exc
        if not isinstance(items, list):
            raise MalformedRecordError(f"Stored catalog for {namespace!r} must be a list")
        return [CatalogEntry.from_dict(item) for item in items]

    def save(self, namespace: str, entries: Iterable[CatalogEntry], *, updated_by: str | None = None) -> int:
        """Replace the stored snapshot; returns the number of entries written."""
        items = [e.to_dict() for e in entries]
        with transaction(self.conn):
            self.execute(
                """
                INSERT INTO catalogs (namespace, items, updated_at, updated_by)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (namespace) DO UPDATE SET
                    items = excluded.items,
                    updated_at = excluded.updated_at,
                    updated_by = excluded.updated_by
                """,
                (namespace, json.dumps(items, ensure_ascii=False), utc_now_iso(), updated_by),
            )
        logger.info("catalog_saved", namespace=namespace, entries=len(items))
        return len(items)


class CatalogAutosaver:
    """Coalesces catalog snapshots and saves only the latest per namespace.

    Each flush opens its own connection through ``connect`` so the timer
    thread never shares a connection with a request handler.
    """

    def __init__(self, connect: ConnectionFactory, *, delay: float | None = 0.6) -> None:
        self._connect = connect
        self._edit_lock = threading.Lock()
        self._batch: PendingBatch[tuple[str, list[CatalogEntry], str | None]] = PendingBatch(
            self._save_latest, delay=delay, name="catalog_autosave"
        )

    def schedule(self, namespace: str, entries: Iterable[CatalogEntry], *, updated_by: str | None = None) -> None:
        self._batch.add((namespace, list(entries), updated_by))

    def latest(self, namespace: str) -> list[CatalogEntry] | None:
        """Most recent unsaved snapshot for ``namespace``, if any."""
        for slug, entries, _ in reversed(self._batch.pending()):
            if slug == namespace:
                return list(entries)
        return None

    def edit(
        self,
        namespace: str,
        load: Callable[[], list[CatalogEntry]],
        apply: Callable[[list[CatalogEntry]], list[CatalogEntry]],
        *,
        updated_by: str | None = None,
    ) -> list[CatalogEntry]:
        """Read-modify-schedule under one lock.

        The base snapshot is the latest pending one, else ``load()``.
        """
        with self._edit_lock, self._batch.hold():
            base = self.latest(namespace)
            if base is None:
                base = load()
            updated = apply(base)
            self.schedule(namespace, updated, updated_by=updated_by)
            return updated

    def flush(self) -> int:
        return self._batch.flush()

    def close(self) -> int:
        return self._batch.close()

    def _save_latest(self, items: list[tuple[str, list[CatalogEntry], str | None]]) -> None:
        latest: dict[str, tuple[list[CatalogEntry], str | None]] = {}
        for namespace, entries, updated_by in items:
            latest[namespace] = (entries, updated_by)
        conn = self._connect()
        try:
            repo = CatalogRepository(conn)
            for namespace, (entries, updated_by) in latest.items():
                repo.save(namespace, entries, updated_by=updated_by)
        finally:
            close = getattr(conn, "close", None)
            if close is not None:
                close()
        logger.debug("catalog_autosave_flushed", snapshots=len(items), namespaces=len(latest))
