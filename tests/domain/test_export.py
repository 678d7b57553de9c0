"""Tests for collecting exportable pairs."""

from langfactory.domain.export import collect_exportable
from langfactory.domain.models import EntryBlock, EntryRow, ExportPair, SequenceView
from langfactory.domain.workspace import Workspace

VIEW = SequenceView(seq_key="column B-1|column B-2|column B-3", title="", tokens=("Animal", "E", "Form"))


class TestCollectExportable:
    def test_skips_excluded_and_unfilled_rows(self):
        block = EntryBlock(
            block=3,
            rows=[
                EntryRow(token_index=2, dec=5, output="cats"),
                EntryRow(token_index=0, dec=1, output="cat"),
                EntryRow(token_index=1, dec=1, output="", db_skip_row=False),
                EntryRow(token_index=1, dec=2, output="feline", db_skip_row=True),
                EntryRow(token_index=2, dec=6, output="enter output value"),
            ],
        )
        assert collect_exportable(VIEW, [block]) == [
            ExportPair("cat", "cat"),
            ExportPair("cat-E-5-Form-3", "cats"),
        ]

    def test_excluded_headword_still_names_the_block(self):
        block = EntryBlock(
            block=1,
            rows=[
                EntryRow(token_index=0, output="dog", db_skip_row=True),
                EntryRow(token_index=1, output="canine"),
            ],
        )
        assert collect_exportable(VIEW, [block]) == [ExportPair("dog-E-1", "canine")]

    def test_without_headword_first_token_is_used(self):
        block = EntryBlock(block=2, rows=[EntryRow(token_index=2, output="shape")])
        assert collect_exportable(VIEW, [block]) == [ExportPair("Animal-E-1-Form-2", "shape")]

    def test_empty(self):
        assert collect_exportable(VIEW, []) == []


class TestCollectWorkspace:
    def test_workspace_pairs(self, workspace_doc, expected_pairs):
        pairs = Workspace.from_dict(workspace_doc).exportable()
        assert [(p.identifier, p.value) for p in pairs] == expected_pairs
