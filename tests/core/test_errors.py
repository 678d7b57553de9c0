"""Tests for langfactory.core.errors."""

import sqlite3

import pytest

from langfactory.core.errors import (
    ConcurrentModificationError,
    DuplicateValueError,
    ErrorCategory,
    ErrorContext,
    FactoryError,
    MalformedRecordError,
    MatchingPairError,
    NamespaceNotFoundError,
    StoreUnavailableError,
    ValidationError,
    categorize_error,
    is_retryable,
)
from langfactory.core.sqlite_conn import translate_sqlite_error


class TestErrorContext:
    def test_empty_context(self):
        ctx = ErrorContext()
        assert ctx.to_dict() == {}

    def test_fields_and_metadata(self):
        ctx = ErrorContext(namespace="animals", identifier="cat", metadata={"block": 2})
        assert ctx.to_dict() == {"namespace": "animals", "identifier": "cat", "block": 2}


class TestFactoryError:
    def test_defaults(self):
        err = FactoryError("boom")
        assert err.message == "boom"
        assert err.category is ErrorCategory.INTERNAL
        assert err.retryable is False

    def test_with_context_is_fluent(self):
        err = StoreUnavailableError("locked").with_context(namespace="animals", attempt=2)
        assert err.context.namespace == "animals"
        assert err.context.metadata["attempt"] == 2

    def test_to_dict_includes_cause(self):
        cause = RuntimeError("driver")
        d = FactoryError("wrapped", cause=cause).to_dict()
        assert d["error_type"] == "FactoryError"
        assert d["cause"] == "driver"


class TestTaxonomy:
    def test_validation_errors_are_not_retryable(self):
        for err in (
            DuplicateValueError("cat", owner="column B-1"),
            MatchingPairError("column B-1", "cat"),
            MalformedRecordError("bad"),
        ):
            assert isinstance(err, ValidationError)
            assert not is_retryable(err)

    def test_transient_errors_are_retryable(self):
        assert is_retryable(StoreUnavailableError("locked"))
        assert is_retryable(ConcurrentModificationError("raced"))

    def test_not_found_category(self):
        err = NamespaceNotFoundError("animals")
        assert err.category is ErrorCategory.NOT_FOUND
        assert err.context.namespace == "animals"

    def test_duplicate_value_names_owner(self):
        err = DuplicateValueError("Cat", owner="column B-4", field="value_a")
        assert "column B-4" in err.message
        assert err.to_dict()["field"] == "value_a"

    def test_builtin_errors(self):
        assert is_retryable(TimeoutError())
        assert not is_retryable(ValueError())
        assert categorize_error(KeyError("x")) is ErrorCategory.VALIDATION


class TestTranslateSqliteError:
    def test_integrity_error_is_conflict(self):
        err = translate_sqlite_error(sqlite3.IntegrityError("UNIQUE constraint failed"))
        assert isinstance(err, ConcurrentModificationError)

    def test_locked_is_unavailable(self):
        err = translate_sqlite_error(sqlite3.OperationalError("database is locked"))
        assert isinstance(err, StoreUnavailableError)
        assert err.retryable

    def test_other_errors_are_not_retryable(self):
        err = translate_sqlite_error(sqlite3.OperationalError("no such table: x"))
        assert not err.retryable
        assert not isinstance(err, StoreUnavailableError)
