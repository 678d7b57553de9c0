"""
Publish pipeline: (identifier, value) pairs into the versioned store.

A batch is split into per-identifier groups. Each group is written in input
order by a single worker, one transaction per pair, so two values for the
same identifier in one batch archive the first exactly like two separate
publishes would. Groups are independent: a failure on one identifier is
reported in its outcome and never aborts the others.

Manifesto:
    - **Atomic per identifier:** archive insert + compare-and-swap commit
      together or not at all
    - **Idempotent:** publishing an unchanged value is a no-op
    - **Bounded retry:** only retryable store errors, with backoff
    - **Cancellable:** a ``threading.Event`` stops the batch between
      transactions; unprocessed pairs are reported ``cancelled``

Architecture:
    ::

        Publisher.publish(namespace, pairs)
            │
            ├─ group by identifier (first-seen order)
            │
            ├─ workers == 1 or no connection factory
            │     └─ groups run sequentially on ctx connection
            │
            └─ workers > 1
                  └─ ThreadPoolExecutor, one connection per group
                        └─ RetryContext(ExponentialBackoff).run(repo.upsert)

Examples:
    >>> publisher = Publisher(conn, retry=ExponentialBackoff(max_attempts=3))
    >>> result = publisher.publish(namespace, [("cat-E-1", "cat")], reason="animals")
    >>> result.inserted
    1

Tags:
    publish, versioning, idempotency, retry, concurrency
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from langfactory.core.errors import FactoryError
from langfactory.core.logging import LogContext, get_logger
from langfactory.core.protocols import Connection, ConnectionFactory
from langfactory.core.retry import ExponentialBackoff, RetryContext, RetryStrategy
from langfactory.core.timestamps import generate_ulid
from langfactory.domain.models import ExportPair, Namespace
from langfactory.store.published import PublishedRepository, UpsertStatus

logger = get_logger(__name__)


class OutcomeStatus(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    CANCELLED = "cancelled"


_FROM_UPSERT = {
    UpsertStatus.INSERTED: OutcomeStatus.INSERTED,
    UpsertStatus.UPDATED: OutcomeStatus.UPDATED,
    UpsertStatus.UNCHANGED: OutcomeStatus.UNCHANGED,
}


@dataclass(slots=True)
class IdentifierOutcome:
    """What happened to one submitted pair."""

    identifier: str
    value: str
    status: OutcomeStatus
    attempts: int = 0
    version: int | None = None
    error: str | None = None
    error_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "identifier": self.identifier,
            "status": self.status.value,
            "attempts": self.attempts,
        }
        if self.version is not None:
            d["version"] = self.version
        if self.error is not None:
            d["error"] = self.error
            d["error_type"] = self.error_type
        return d


@dataclass
class PublishResult:
    """Per-pair outcomes of one batch, in submission order."""

    namespace: str
    batch_id: str
    outcomes: list[IdentifierOutcome] = field(default_factory=list)

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def inserted(self) -> int:
        return self._count(OutcomeStatus.INSERTED)

    @property
    def updated(self) -> int:
        return self._count(OutcomeStatus.UPDATED)

    @property
    def archived(self) -> int:
        """Every update archives exactly one prior value."""
        return self.updated

    @property
    def unchanged(self) -> int:
        return self._count(OutcomeStatus.UNCHANGED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def cancelled(self) -> int:
        return self._count(OutcomeStatus.CANCELLED)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.cancelled == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "batch_id": self.batch_id,
            "inserted": self.inserted,
            "updated": self.updated,
            "archived": self.archived,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def group_by_identifier(pairs: Iterable[ExportPair]) -> list[list[tuple[int, ExportPair]]]:
    """Group pairs by identifier, keeping first-seen group order and input order within a group."""
    groups: dict[str, list[tuple[int, ExportPair]]] = {}
    for position, pair in enumerate(pairs):
        groups.setdefault(pair.identifier, []).append((position, pair))
    return list(groups.values())


class Publisher:
    """Writes batches of pairs into one namespace's versioned store.

    Args:
        conn: Connection used when groups run sequentially.
        connect: Opens a fresh connection per worker; required for
            ``workers > 1``.
        retry: Strategy for retryable store errors.
        workers: Identifier groups processed in parallel.
        updated_by: Recorded on every written record.
        sleep: Backoff sleep, injectable for tests.
    """

    def __init__(
        self,
        conn: Connection,
        *,
        connect: ConnectionFactory | None = None,
        retry: RetryStrategy | None = None,
        workers: int = 1,
        updated_by: str | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.conn = conn
        self.connect = connect
        self.retry = retry or ExponentialBackoff()
        self.workers = max(1, workers)
        self.updated_by = updated_by
        self._sleep = sleep

    def publish(
        self,
        namespace: Namespace,
        pairs: Iterable[ExportPair | tuple[str, str] | dict[str, Any]],
        reason: str | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> PublishResult:
        """Upsert every pair; returns one outcome per pair.

        Raises:
            MalformedRecordError: a submitted pair is not an
                ``(identifier, value)`` of strings. Raised before anything
                is written.
        """
        parsed = [ExportPair.from_value(p) for p in pairs]
        reason = reason or namespace.slug
        batch_id = generate_ulid()
        groups = group_by_identifier(parsed)
        slots: list[IdentifierOutcome | None] = [None] * len(parsed)

        with LogContext(namespace=namespace.slug, batch_id=batch_id):
            logger.info("publish_started", pairs=len(parsed), identifiers=len(groups), workers=self.workers)

            if self.workers > 1 and self.connect is not None and len(groups) > 1:
                with ThreadPoolExecutor(max_workers=self.workers) as executor:
                    futures = [
                        executor.submit(
                            self._run_group_on_own_connection, namespace, group, reason, batch_id, cancel_event
                        )
                        for group in groups
                    ]
                    for future in futures:
                        for position, outcome in future.result():
                            slots[position] = outcome
            else:
                repo = PublishedRepository(self.conn, namespace)
                for group in groups:
                    for position, outcome in self._run_group(repo, group, reason, batch_id, cancel_event):
                        slots[position] = outcome

            result = PublishResult(namespace.slug, batch_id, [o for o in slots if o is not None])
            logger.info(
                "publish_completed",
                inserted=result.inserted,
                updated=result.updated,
                unchanged=result.unchanged,
                failed=result.failed,
                cancelled=result.cancelled,
            )
        return result

    # ------------------------------------------------------------------ #
    # Group execution
    # ------------------------------------------------------------------ #

    def _run_group_on_own_connection(
        self,
        namespace: Namespace,
        group: list[tuple[int, ExportPair]],
        reason: str,
        batch_id: str,
        cancel_event: threading.Event | None,
    ) -> list[tuple[int, IdentifierOutcome]]:
        conn = self.connect()
        try:
            return self._run_group(PublishedRepository(conn, namespace), group, reason, batch_id, cancel_event)
        finally:
            close = getattr(conn, "close", None)
            if close is not None:
                close()

    def _run_group(
        self,
        repo: PublishedRepository,
        group: list[tuple[int, ExportPair]],
        reason: str,
        batch_id: str,
        cancel_event: threading.Event | None,
    ) -> list[tuple[int, IdentifierOutcome]]:
        results = []
        for position, pair in group:
            if cancel_event is not None and cancel_event.is_set():
                results.append((position, IdentifierOutcome(pair.identifier, pair.value, OutcomeStatus.CANCELLED)))
                continue
            results.append((position, self._publish_one(repo, pair, reason, batch_id)))
        return results

    def _publish_one(
        self,
        repo: PublishedRepository,
        pair: ExportPair,
        reason: str,
        batch_id: str,
    ) -> IdentifierOutcome:
        namespace = repo.namespace.slug

        def on_retry(attempt: int, error: Exception, delay: float) -> None:
            logger.warning(
                "publish_identifier_retry",
                namespace=namespace,
                batch_id=batch_id,
                identifier=pair.identifier,
                attempt=attempt,
                delay=round(delay, 3),
                error=str(error),
            )

        retry_kwargs: dict[str, Any] = {"on_retry": on_retry}
        if self._sleep is not None:
            retry_kwargs["sleep"] = self._sleep
        ctx = RetryContext(self.retry, **retry_kwargs)

        try:
            upserted = ctx.run(
                repo.upsert,
                pair.identifier,
                pair.value,
                reason=reason,
                updated_by=self.updated_by,
                batch_id=batch_id,
            )
        except FactoryError as exc:
            exc.with_context(namespace=namespace, identifier=pair.identifier, batch_id=batch_id)
            logger.warning(
                "publish_identifier_failed",
                namespace=namespace,
                batch_id=batch_id,
                identifier=pair.identifier,
                attempts=ctx.attempts,
                **exc.to_dict(),
            )
            return IdentifierOutcome(
                pair.identifier,
                pair.value,
                OutcomeStatus.FAILED,
                attempts=ctx.attempts,
                error=exc.message,
                error_type=type(exc).__name__,
            )
        except Exception as exc:
            logger.exception(
                "publish_identifier_failed",
                namespace=namespace,
                batch_id=batch_id,
                identifier=pair.identifier,
                attempts=ctx.attempts,
            )
            return IdentifierOutcome(
                pair.identifier,
                pair.value,
                OutcomeStatus.FAILED,
                attempts=ctx.attempts,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        status = _FROM_UPSERT[upserted.status]
        logger.debug(
            f"publish_identifier_{status.value}",
            namespace=namespace,
            batch_id=batch_id,
            identifier=pair.identifier,
            version=upserted.version,
        )
        return IdentifierOutcome(
            pair.identifier,
            pair.value,
            status,
            attempts=ctx.attempts,
            version=upserted.version,
        )


__all__ = [
    "OutcomeStatus",
    "IdentifierOutcome",
    "PublishResult",
    "Publisher",
    "group_by_identifier",
]
