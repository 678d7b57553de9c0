"""Tests for workspace documents."""

import pytest

from langfactory.core.errors import (
    DuplicateSequenceError,
    DuplicateStepError,
    DuplicateValueError,
    MalformedRecordError,
)
from langfactory.domain.workspace import Workspace


class TestWorkspaceFromDict:
    def test_parses_document(self, workspace_doc):
        ws = Workspace.from_dict(workspace_doc)
        assert ws.namespace == "animals"
        assert len(ws.catalog) == 3
        assert [s.seq_key for s in ws.sequences.sequences] == ["column B-1|column B-2|column B-3"]

    def test_namespace_argument_wins(self, workspace_doc):
        assert Workspace.from_dict(workspace_doc, namespace="other").namespace == "other"

    def test_missing_namespace(self, workspace_doc):
        del workspace_doc["namespace"]
        with pytest.raises(MalformedRecordError):
            Workspace.from_dict(workspace_doc)

    def test_catalog_rules_apply(self, workspace_doc):
        workspace_doc["catalog"].append({"b_key": "column B-4", "value_a": "FORMS"})
        with pytest.raises(DuplicateValueError):
            Workspace.from_dict(workspace_doc)

    def test_case_sensitive_catalog(self, workspace_doc):
        workspace_doc["catalog"].append({"b_key": "column B-4", "value_a": "FORMS"})
        ws = Workspace.from_dict(workspace_doc, case_sensitive=True)
        assert len(ws.catalog) == 4

    def test_path_rules_apply(self, workspace_doc):
        workspace_doc["sequences"].append(["column B-1", "column B-1"])
        with pytest.raises(DuplicateStepError):
            Workspace.from_dict(workspace_doc)

    def test_repeated_path_is_rejected(self, workspace_doc):
        workspace_doc["sequences"].append(["column B-1", "column B-2", "column B-3"])
        with pytest.raises(DuplicateSequenceError):
            Workspace.from_dict(workspace_doc)

    def test_entries_for_unknown_sequence(self, workspace_doc):
        workspace_doc["entries"]["column B-9"] = [{"block": 1, "rows": []}]
        with pytest.raises(MalformedRecordError):
            Workspace.from_dict(workspace_doc)

    def test_to_dict_round_trip(self, workspace_doc):
        ws = Workspace.from_dict(workspace_doc)
        again = Workspace.from_dict(ws.to_dict())
        assert again.to_dict() == ws.to_dict()


def test_empty_workspace_exports_nothing():
    assert Workspace.empty("animals").exportable() == []
