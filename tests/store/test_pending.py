"""Tests for PendingBatch."""

import threading

import pytest

from langfactory.store.pending import PendingBatch


class TestPendingBatch:
    def test_flush_hands_over_items_in_order(self):
        saved = []
        batch = PendingBatch(saved.extend)
        batch.add("a")
        batch.add("b")
        assert batch.pending() == ["a", "b"]
        assert batch.flush() == 2
        assert saved == ["a", "b"]
        assert len(batch) == 0

    def test_empty_flush_skips_callback(self):
        calls = []
        assert PendingBatch(calls.append).flush() == 0
        assert calls == []

    def test_failed_flush_requeues(self):
        def fail(items):
            raise OSError("disk full")

        batch = PendingBatch(fail)
        batch.add("a")
        with pytest.raises(OSError):
            batch.flush()
        batch.add("b")
        assert batch.pending() == ["a", "b"]

    def test_close_flushes_and_rejects_new_items(self):
        saved = []
        batch = PendingBatch(saved.extend, delay=60)
        batch.add("a")
        assert batch.close() == 1
        assert saved == ["a"]
        with pytest.raises(RuntimeError):
            batch.add("b")

    def test_context_manager_flushes_on_exit(self):
        saved = []
        with PendingBatch(saved.extend) as batch:
            batch.add("a")
        assert saved == ["a"]

    @pytest.mark.slow
    def test_timer_flush(self):
        flushed = threading.Event()
        saved = []

        def flush(items):
            saved.extend(items)
            flushed.set()

        batch = PendingBatch(flush, delay=0.01)
        batch.add("a")
        batch.add("b")
        assert flushed.wait(5)
        assert saved == ["a", "b"]
        batch.close()

    @pytest.mark.slow
    def test_failed_timer_flush_is_retried(self):
        flushed = threading.Event()
        attempts = []
        saved = []

        def flaky(items):
            attempts.append(list(items))
            if len(attempts) == 1:
                raise OSError("database is locked")
            saved.extend(items)
            flushed.set()

        batch = PendingBatch(flaky, delay=0.01)
        batch.add("a")
        assert flushed.wait(5)
        assert saved == ["a"]
        assert len(attempts) == 2
        assert batch.pending() == []
        batch.close()
