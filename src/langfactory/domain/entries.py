"""
Entry Model: content blocks attached to sequences.

Blocks are numbered per sequence (max + 1). Rows inside a block address a
position of the path (``token_index``) and a sub-version (``dec``). The
model never cascades: deleting a block or row only removes it from its
parent list.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from langfactory.core.errors import EntryNotFoundError, MalformedRecordError
from langfactory.core.logging import get_logger
from langfactory.domain.models import EntryBlock, EntryRow
from langfactory.domain.outputs import PLACEHOLDER, parse_words
from langfactory.domain.sequences import SequenceBuilder

logger = get_logger(__name__)


class EntryModel:
    """Entry blocks of one namespace, keyed by ``seq_key``."""

    def __init__(self, blocks: Mapping[str, Iterable[EntryBlock]] | None = None) -> None:
        self._blocks: dict[str, list[EntryBlock]] = {}
        for seq_key, items in (blocks or {}).items():
            items = list(items)
            numbers = [b.block for b in items]
            if len(numbers) != len(set(numbers)):
                raise MalformedRecordError(f"Duplicate block numbers in {seq_key!r}", value=numbers)
            self._blocks[seq_key] = items

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntryModel:
        if not isinstance(data, Mapping):
            raise MalformedRecordError("entries must be an object keyed by seq_key")
        parsed: dict[str, list[EntryBlock]] = {}
        for seq_key, items in data.items():
            if not isinstance(items, list):
                raise MalformedRecordError(f"entries[{seq_key!r}] must be a list of blocks")
            parsed[seq_key] = [EntryBlock.from_dict(b) for b in items]
        return cls(parsed)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {k: [b.to_dict() for b in v] for k, v in self._blocks.items() if v}

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def blocks(self, seq_key: str) -> list[EntryBlock]:
        return list(self._blocks.get(seq_key, ()))

    def seq_keys(self) -> list[str]:
        return [k for k, v in self._blocks.items() if v]

    def block(self, seq_key: str, block: int) -> EntryBlock:
        for item in self._blocks.get(seq_key, ()):
            if item.block == block:
                return item
        raise EntryNotFoundError(seq_key, block)

    def row(self, seq_key: str, block: int, row_index: int) -> EntryRow:
        rows = self.block(seq_key, block).rows
        if not 0 <= row_index < len(rows):
            raise EntryNotFoundError(seq_key, block, row_index)
        return rows[row_index]

    # ------------------------------------------------------------------ #
    # Editor actions
    # ------------------------------------------------------------------ #

    def add_block(self, seq_key: str) -> EntryBlock:
        items = self._blocks.setdefault(seq_key, [])
        item = EntryBlock(block=max((b.block for b in items), default=0) + 1)
        items.append(item)
        return item

    def add_row(self, seq_key: str, block: int) -> EntryRow:
        """Append a row at the next path position of ``block``."""
        target = self.block(seq_key, block)
        row = EntryRow(token_index=max((r.token_index for r in target.rows), default=-1) + 1)
        target.rows.append(row)
        return row

    def add_decimal(self, seq_key: str, block: int, token_index: int) -> EntryRow:
        """Add another sub-version at ``token_index``, after its last row."""
        target = self.block(seq_key, block)
        positions = [i for i, r in enumerate(target.rows) if r.token_index == token_index]
        dec = max((target.rows[i].dec for i in positions), default=0) + 1
        row = EntryRow(token_index=token_index, dec=dec)
        target.rows.insert(positions[-1] + 1 if positions else len(target.rows), row)
        return row

    def set_output(self, seq_key: str, block: int, row_index: int, output: str) -> EntryRow:
        row = self.row(seq_key, block, row_index)
        row.output = output
        return row

    def toggle_inclusion(self, seq_key: str, block: int, row_index: int) -> bool:
        """Flip the row's skip flag; returns the new ``db_skip_row``."""
        row = self.row(seq_key, block, row_index)
        row.db_skip_row = not row.db_skip_row
        return row.db_skip_row

    def delete_block(self, seq_key: str, block: int) -> EntryBlock:
        target = self.block(seq_key, block)
        self._blocks[seq_key].remove(target)
        return target

    def delete_row(self, seq_key: str, block: int, row_index: int) -> EntryRow:
        row = self.row(seq_key, block, row_index)
        self.block(seq_key, block).rows.pop(row_index)
        return row

    def add_headword_blocks(self, seq_key: str, path_length: int, words: Iterable[str]) -> list[EntryBlock]:
        """One new block per headword, with a row for every path step.

        Position 0 holds the headword; the others hold the placeholder text
        so they stay unpublished until an editor fills them.
        """
        created = []
        for word in words:
            item = self.add_block(seq_key)
            item.rows.extend(
                EntryRow(token_index=i, dec=1, output=word if i == 0 else PLACEHOLDER)
                for i in range(path_length)
            )
            created.append(item)
        return created


def quick_add_headwords(
    builder: SequenceBuilder,
    entries: EntryModel,
    b_key: str,
    text: str,
) -> dict[str, list[EntryBlock]]:
    """Add headword blocks to every sequence whose first step is ``b_key``.

    ``text`` is split on commas and newlines. Returns the new blocks per
    ``seq_key``; sequences are untouched when no words are given.
    """
    words = parse_words(text)
    if not words:
        return {}
    added = {
        sequence.seq_key: entries.add_headword_blocks(sequence.seq_key, len(sequence), words)
        for sequence in builder.starting_with(b_key)
    }
    logger.info("headwords_added", b_key=b_key, words=len(words), sequences=len(added))
    return added
