"""Tests for langfactory.core.retry."""

import pytest

from langfactory.core.errors import MalformedRecordError, StoreUnavailableError
from langfactory.core.retry import ExponentialBackoff, NoRetry, RetryContext


class TestExponentialBackoff:
    def test_delays_grow_and_cap(self):
        strategy = ExponentialBackoff(base_delay=0.1, max_delay=0.3, jitter=False)
        assert strategy.next_delay(1) == pytest.approx(0.1)
        assert strategy.next_delay(2) == pytest.approx(0.2)
        assert strategy.next_delay(3) == pytest.approx(0.3)

    def test_jitter_stays_in_range(self):
        strategy = ExponentialBackoff(base_delay=1.0, max_delay=10.0, jitter_range=0.1)
        for _ in range(20):
            assert 0.9 <= strategy.next_delay(1) <= 1.1

    def test_only_retryable_errors_within_budget(self):
        strategy = ExponentialBackoff(max_attempts=3)
        assert strategy.should_retry(1, StoreUnavailableError("locked"))
        assert not strategy.should_retry(3, StoreUnavailableError("locked"))
        assert not strategy.should_retry(1, MalformedRecordError("bad"))


class TestRetryContext:
    def test_succeeds_after_transient_failures(self):
        calls = []
        sleeps = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise StoreUnavailableError("locked")
            return "done"

        ctx = RetryContext(ExponentialBackoff(max_attempts=3, jitter=False), sleep=sleeps.append)
        assert ctx.run(flaky) == "done"
        assert ctx.attempts == 3
        assert len(sleeps) == 2
        assert len(ctx.errors) == 2

    def test_gives_up_after_max_attempts(self):
        ctx = RetryContext(ExponentialBackoff(max_attempts=2), sleep=lambda _: None)

        def always_locked():
            raise StoreUnavailableError("locked")

        with pytest.raises(StoreUnavailableError):
            ctx.run(always_locked)
        assert ctx.attempts == 2

    def test_non_retryable_raises_immediately(self):
        retries = []
        ctx = RetryContext(
            ExponentialBackoff(max_attempts=5),
            on_retry=lambda attempt, error, delay: retries.append(attempt),
            sleep=lambda _: None,
        )

        def bad():
            raise MalformedRecordError("bad")

        with pytest.raises(MalformedRecordError):
            ctx.run(bad)
        assert ctx.attempts == 1
        assert retries == []

    def test_no_retry(self):
        ctx = RetryContext(NoRetry())

        def locked():
            raise StoreUnavailableError("locked")

        with pytest.raises(StoreUnavailableError):
            ctx.run(locked)
        assert ctx.attempts == 1
