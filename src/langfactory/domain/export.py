"""Exportable pairs: entry rows filtered and turned into (identifier, value)."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from langfactory.core.errors import MalformedRecordError
from langfactory.domain.identifiers import compose_id, headword_override
from langfactory.domain.models import EntryBlock, ExportPair, SequenceView
from langfactory.domain.outputs import export_value, is_filled_output

if TYPE_CHECKING:
    from langfactory.domain.workspace import Workspace


def collect_exportable(view: SequenceView, blocks: Iterable[EntryBlock]) -> list[ExportPair]:
    """Pairs for every included, filled row of ``blocks``.

    Blocks keep their stored order; inside a block rows are ordered by
    ``token_index`` then ``dec``.
    """
    pairs: list[ExportPair] = []
    for block in blocks:
        headword = headword_override(block)
        for row in sorted(block.rows, key=lambda r: (r.token_index, r.dec)):
            if row.db_skip_row or not is_filled_output(row.output):
                continue
            try:
                identifier = compose_id(view.tokens, row.token_index, block.block, row.dec, headword)
            except MalformedRecordError as exc:
                raise exc.with_context(seq_key=view.seq_key, block=block.block)
            pairs.append(ExportPair(identifier, export_value(row.output)))
    return pairs


def collect_workspace(workspace: Workspace) -> list[ExportPair]:
    """Pairs of every sequence in ``workspace``, in stored sequence order."""
    pairs: list[ExportPair] = []
    for sequence in workspace.sequences.sequences:
        blocks = workspace.entries.blocks(sequence.seq_key)
        if blocks:
            pairs.extend(collect_exportable(workspace.sequences.describe(sequence), blocks))
    return pairs
