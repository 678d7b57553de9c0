"""
Domain model: catalog, sequences, entries and identifier composition.

Nothing in this package touches the database. Every piece of state lives in
an explicit per-namespace object.
"""

from langfactory.domain.catalog import Catalog
from langfactory.domain.entries import EntryModel
from langfactory.domain.export import collect_exportable, collect_workspace
from langfactory.domain.identifiers import compose_id, headword_override
from langfactory.domain.models import CatalogEntry, EntryBlock, EntryRow, ExportPair, Sequence, SequenceView
from langfactory.domain.sequences import SequenceBuilder
from langfactory.domain.workspace import Workspace

__all__ = [
    "Catalog",
    "CatalogEntry",
    "EntryBlock",
    "EntryModel",
    "EntryRow",
    "ExportPair",
    "Sequence",
    "SequenceBuilder",
    "SequenceView",
    "Workspace",
    "collect_exportable",
    "collect_workspace",
    "compose_id",
    "headword_override",
]
