"""
Workspace: one namespace's editor state as a single document.

Shape::

    {
      "namespace": "animals",
      "catalog":   [{"b_key": "column B-1", "value_a": "Animal", "value_b": "Animals"}, ...],
      "sequences": [["column B-1", "column B-2"], ...],          # newest first
      "entries":   {"column B-1|column B-2": [{"block": 1, "rows": [...]}, ...]}
    }

Loading replays the catalog through its uniqueness rules and the sequences
through the builder's path rules, so a hand-edited or stale document is
rejected with the same errors an editor would see. A path listed twice
raises ``DuplicateSequenceError`` just as a second ``save`` would.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from langfactory.core.errors import DuplicateSequenceError, MalformedRecordError
from langfactory.domain.catalog import Catalog
from langfactory.domain.entries import EntryModel
from langfactory.domain.export import collect_workspace
from langfactory.domain.models import CatalogEntry, ExportPair, Sequence
from langfactory.domain.sequences import SequenceBuilder, validate_path


@dataclass
class Workspace:
    namespace: str
    catalog: Catalog
    sequences: SequenceBuilder
    entries: EntryModel

    @classmethod
    def empty(cls, namespace: str, *, case_sensitive: bool = False, enforce_no_match: bool = True) -> Workspace:
        catalog = Catalog(namespace, case_sensitive=case_sensitive, enforce_no_match=enforce_no_match)
        return cls(namespace, catalog, SequenceBuilder(catalog), EntryModel())

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        namespace: str | None = None,
        case_sensitive: bool = False,
        enforce_no_match: bool = True,
    ) -> Workspace:
        """Parse and validate a workspace document.

        ``namespace`` overrides the document's own slug (the URL wins over
        the body).
        """
        if not isinstance(data, Mapping):
            raise MalformedRecordError("Workspace must be an object")
        slug = namespace or data.get("namespace")
        if not isinstance(slug, str) or not slug:
            raise MalformedRecordError("Workspace is missing required field 'namespace'", field="namespace")

        raw_catalog = data.get("catalog") or []
        raw_sequences = data.get("sequences") or []
        if not isinstance(raw_catalog, list):
            raise MalformedRecordError("Workspace.catalog must be a list", field="catalog")
        if not isinstance(raw_sequences, list):
            raise MalformedRecordError("Workspace.sequences must be a list", field="sequences")

        catalog = Catalog.from_entries(
            slug,
            (CatalogEntry.from_dict(e) for e in raw_catalog),
            case_sensitive=case_sensitive,
            enforce_no_match=enforce_no_match,
        )
        paths: list[tuple[str, ...]] = []
        for raw in raw_sequences:
            path = validate_path(Sequence.from_value(raw).path)
            if path in paths:
                raise DuplicateSequenceError(Sequence(path).seq_key)
            paths.append(path)
        builder = SequenceBuilder(catalog)
        builder.merge(paths)
        entries = EntryModel.from_dict(data.get("entries") or {})

        known = {s.seq_key for s in builder.sequences}
        unknown = [k for k in entries.seq_keys() if k not in known]
        if unknown:
            raise MalformedRecordError(
                f"Entries reference unknown sequences: {', '.join(sorted(unknown))}",
                field="entries",
                value=unknown,
            )
        return cls(slug, catalog, builder, entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "catalog": [e.to_dict() for e in self.catalog.entries()],
            "sequences": [list(s.path) for s in self.sequences.sequences],
            "entries": self.entries.to_dict(),
        }

    def exportable(self) -> list[ExportPair]:
        return collect_workspace(self)
