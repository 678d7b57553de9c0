"""Tests for the sequence builder."""

import pytest

from langfactory.core.errors import (
    DuplicateSequenceError,
    DuplicateStepError,
    EmptySequenceError,
    SequenceNotFoundError,
)
from langfactory.domain.catalog import Catalog
from langfactory.domain.sequences import SequenceBuilder


@pytest.fixture
def builder() -> SequenceBuilder:
    catalog = Catalog("animals")
    catalog.upsert("column B-1", "Animal", "Animals")
    catalog.upsert("column B-2", "E", "Entries")
    catalog.upsert("column B-3", "Form")
    return SequenceBuilder(catalog)


class TestSave:
    def test_new_sequences_are_prepended(self, builder):
        builder.save(["column B-1", "column B-2"])
        builder.save(["column B-3"])
        assert [s.seq_key for s in builder.sequences] == ["column B-3", "column B-1|column B-2"]

    def test_duplicate_path_is_rejected(self, builder):
        builder.save(["column B-1", "column B-2"])
        with pytest.raises(DuplicateSequenceError):
            builder.save(("column B-1", "column B-2"))
        assert len(builder) == 1

    def test_same_steps_in_other_order_are_distinct(self, builder):
        builder.save(["column B-1", "column B-2"])
        builder.save(["column B-2", "column B-1"])
        assert len(builder) == 2

    def test_repeated_step_is_rejected(self, builder):
        with pytest.raises(DuplicateStepError):
            builder.save(["column B-1", "column B-2", "column B-1"])

    def test_empty_path_is_rejected(self, builder):
        with pytest.raises(EmptySequenceError):
            builder.save([])

    def test_editing_replaces_in_place(self, builder):
        builder.save(["column B-1"])
        builder.save(["column B-2"])
        builder.save(["column B-2", "column B-3"], editing_index=1)
        assert [s.seq_key for s in builder.sequences] == ["column B-2", "column B-2|column B-3"]

    def test_editing_out_of_range(self, builder):
        with pytest.raises(SequenceNotFoundError):
            builder.save(["column B-1"], editing_index=0)


class TestQueries:
    def test_title_and_tokens(self, builder):
        view = builder.describe(builder.save(["column B-1", "column B-2", "column B-3"]))
        assert view.title == "Animals → Entries → Form"
        assert view.tokens == ("Animal", "E", "Form")
        assert view.seq_key == "column B-1|column B-2|column B-3"

    def test_find_and_starting_with(self, builder):
        builder.save(["column B-1", "column B-2"])
        builder.save(["column B-1", "column B-3"])
        builder.save(["column B-2"])
        assert len(builder.starting_with("column B-1")) == 2
        assert builder.find("column B-2").path == ("column B-2",)
        with pytest.raises(SequenceNotFoundError):
            builder.find("column B-9")

    def test_delete(self, builder):
        builder.save(["column B-1"])
        removed = builder.delete(0)
        assert removed.seq_key == "column B-1"
        assert len(builder) == 0
        with pytest.raises(SequenceNotFoundError):
            builder.delete(0)


class TestMerge:
    def test_appends_new_paths_and_skips_known(self, builder):
        builder.save(["column B-1"])
        added = builder.merge([["column B-2"], ["column B-1"], ["column B-2"]])
        assert [s.seq_key for s in added] == ["column B-2"]
        assert [s.seq_key for s in builder.sequences] == ["column B-1", "column B-2"]

    def test_validates_each_path(self, builder):
        with pytest.raises(DuplicateStepError):
            builder.merge([["column B-1", "column B-1"]])
