"""
Tests for the publish pipeline.

Covers idempotent re-publishing, archive-before-update, retry of transient
store errors, per-identifier failure isolation, cancellation, parallel
workers and two writers racing on one identifier.
"""

from __future__ import annotations

import threading

import pytest

from langfactory.core.errors import MalformedRecordError, StoreUnavailableError
from langfactory.core.retry import ExponentialBackoff
from langfactory.core.sqlite_conn import SqliteConnection
from langfactory.domain.models import ExportPair
from langfactory.domain.workspace import Workspace
from langfactory.publish.pipeline import OutcomeStatus, Publisher, group_by_identifier
from langfactory.store.published import PublishedRepository


@pytest.fixture
def publisher(conn) -> Publisher:
    return Publisher(conn, retry=ExponentialBackoff(jitter=False), sleep=lambda _: None)


def _statuses(result) -> list[str]:
    return [o.status.value for o in result.outcomes]


class TestPublish:
    def test_first_publish_inserts(self, publisher, namespace):
        result = publisher.publish(namespace, [("cat", "A"), ("dog", "B")])
        assert _statuses(result) == ["inserted", "inserted"]
        assert result.ok
        assert result.batch_id

    def test_republishing_is_idempotent(self, publisher, conn, namespace):
        publisher.publish(namespace, [("cat", "A")])
        result = publisher.publish(namespace, [("cat", "A")])
        assert _statuses(result) == ["unchanged"]
        repo = PublishedRepository(conn, namespace)
        assert repo.get_active("cat").version == 1
        assert repo.count_archive() == 0

    def test_change_archives_old_value(self, publisher, conn, namespace):
        publisher.publish(namespace, [("cat", "A")])
        result = publisher.publish(namespace, [("cat", "B")], reason="fix-typos")
        assert (result.updated, result.archived) == (1, 1)

        repo = PublishedRepository(conn, namespace)
        assert repo.get_active("cat").value == "B"
        [archived] = repo.list_archive("cat")
        assert (archived.value, archived.reason, archived.batch_id) == ("A", "fix-typos", result.batch_id)

    def test_default_reason_is_namespace(self, publisher, conn, namespace):
        publisher.publish(namespace, [("cat", "A")])
        publisher.publish(namespace, [("cat", "B")])
        assert PublishedRepository(conn, namespace).list_archive()[0].reason == "animals"

    def test_one_outcome_per_pair_in_order(self, publisher, namespace):
        result = publisher.publish(namespace, [("cat", "A"), ("dog", "X"), ("cat", "B"), ("cat", "B")])
        assert [(o.identifier, o.status.value) for o in result.outcomes] == [
            ("cat", "inserted"),
            ("dog", "inserted"),
            ("cat", "updated"),
            ("cat", "unchanged"),
        ]

    def test_malformed_pair_rejects_batch(self, publisher, conn, namespace):
        with pytest.raises(MalformedRecordError):
            publisher.publish(namespace, [("cat", "A"), ("", "B")])
        assert PublishedRepository(conn, namespace).get_active("cat") is None

    def test_updated_by_is_recorded(self, conn, namespace):
        Publisher(conn, updated_by="ed").publish(namespace, [("cat", "A")])
        assert PublishedRepository(conn, namespace).get_active("cat").updated_by == "ed"


class TestFailures:
    def test_transient_error_is_retried(self, monkeypatch, conn, namespace):
        original = PublishedRepository.upsert
        calls = []
        sleeps = []

        def flaky(self, identifier, value, **kwargs):
            calls.append(identifier)
            if len(calls) == 1:
                raise StoreUnavailableError("database is locked")
            return original(self, identifier, value, **kwargs)

        monkeypatch.setattr(PublishedRepository, "upsert", flaky)
        publisher = Publisher(conn, retry=ExponentialBackoff(base_delay=0.5, jitter=False), sleep=sleeps.append)
        result = publisher.publish(namespace, [("cat", "A")])

        [outcome] = result.outcomes
        assert (outcome.status, outcome.attempts) == (OutcomeStatus.INSERTED, 2)
        assert sleeps == [0.5]

    def test_exhausted_retries_fail_one_identifier(self, monkeypatch, publisher, conn, namespace):
        original = PublishedRepository.upsert

        def locked_cat(self, identifier, value, **kwargs):
            if identifier == "cat":
                raise StoreUnavailableError("database is locked")
            return original(self, identifier, value, **kwargs)

        monkeypatch.setattr(PublishedRepository, "upsert", locked_cat)
        result = publisher.publish(namespace, [("cat", "A"), ("dog", "B")])

        cat, dog = result.outcomes
        assert (cat.status, cat.attempts, cat.error_type) == (OutcomeStatus.FAILED, 3, "StoreUnavailableError")
        assert dog.status is OutcomeStatus.INSERTED
        assert not result.ok
        assert PublishedRepository(conn, namespace).get_active("dog").value == "B"

    def test_unexpected_error_is_not_retried(self, monkeypatch, publisher, namespace):
        def broken(self, identifier, value, **kwargs):
            raise RuntimeError("bug")

        monkeypatch.setattr(PublishedRepository, "upsert", broken)
        [outcome] = publisher.publish(namespace, [("cat", "A")]).outcomes
        assert (outcome.status, outcome.attempts, outcome.error_type) == (OutcomeStatus.FAILED, 1, "RuntimeError")

    def test_cancelled_batch(self, publisher, conn, namespace):
        cancel = threading.Event()
        cancel.set()
        result = publisher.publish(namespace, [("cat", "A"), ("dog", "B")], cancel_event=cancel)
        assert _statuses(result) == ["cancelled", "cancelled"]
        assert PublishedRepository(conn, namespace).get_active("cat") is None


class TestConcurrency:
    def test_group_by_identifier_keeps_order(self):
        groups = group_by_identifier([ExportPair("a", "1"), ExportPair("b", "2"), ExportPair("a", "3")])
        assert [[pos for pos, _ in g] for g in groups] == [[0, 2], [1]]

    def test_parallel_workers(self, conn, db_path, namespace):
        publisher = Publisher(conn, connect=lambda: SqliteConnection(db_path), workers=4)
        pairs = [(f"word-{i}", str(i)) for i in range(12)]
        result = publisher.publish(namespace, pairs)
        assert [o.identifier for o in result.outcomes] == [p[0] for p in pairs]
        assert result.inserted == 12
        assert len(PublishedRepository(conn, namespace).list_active()) == 12

    @pytest.mark.integration
    def test_racing_writers_archive_exactly_once(self, conn, db_path, namespace):
        barrier = threading.Barrier(2)
        results = []

        def write(value: str) -> None:
            own = SqliteConnection(db_path)
            try:
                barrier.wait()
                results.append(Publisher(own, sleep=lambda _: None).publish(namespace, [("cat", value)]))
            finally:
                own.close()

        threads = [threading.Thread(target=write, args=(v,)) for v in ("B", "C")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        statuses = sorted(r.outcomes[0].status.value for r in results)
        assert statuses == ["inserted", "updated"]

        repo = PublishedRepository(conn, namespace)
        active = repo.get_active("cat")
        [archived] = repo.list_archive("cat")
        assert {active.value, archived.value} == {"B", "C"}
        assert active.version == 2


class TestRoundTrip:
    def test_collect_publish_refresh_read(self, publisher, conn, namespace, workspace_doc, expected_pairs):
        pairs = Workspace.from_dict(workspace_doc).exportable()
        publisher.publish(namespace, pairs)
        repo = PublishedRepository(conn, namespace)
        repo.refresh_view()
        published = sorted((r["identifier"], r["value"]) for r in repo.list_published())
        assert published == sorted(expected_pairs)
