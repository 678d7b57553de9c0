"""
Sequence Builder: ordered paths of catalog keys.

A sequence is a non-empty path in which no key repeats. Within one namespace
no two stored sequences share the same ordered path. New sequences are
prepended (newest first); editing replaces the sequence at its index.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence as SequenceLike

from langfactory.core.errors import (
    DuplicateSequenceError,
    DuplicateStepError,
    EmptySequenceError,
    SequenceNotFoundError,
)
from langfactory.core.logging import get_logger
from langfactory.domain.catalog import Catalog
from langfactory.domain.models import Sequence, SequenceView

logger = get_logger(__name__)

TITLE_SEPARATOR = " → "


def validate_path(path: Iterable[str]) -> tuple[str, ...]:
    """Return ``path`` as a tuple, rejecting empty paths and repeated steps."""
    steps = tuple(path)
    if not steps:
        raise EmptySequenceError()
    seen: set[str] = set()
    for step in steps:
        if step in seen:
            raise DuplicateStepError(step)
        seen.add(step)
    return steps


class SequenceBuilder:
    """Stored sequences of one namespace, resolved against its catalog."""

    def __init__(self, catalog: Catalog, sequences: Iterable[Sequence] = ()) -> None:
        self.catalog = catalog
        self._sequences: list[Sequence] = list(sequences)

    @property
    def sequences(self) -> list[Sequence]:
        return list(self._sequences)

    def __len__(self) -> int:
        return len(self._sequences)

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def save(self, path: SequenceLike[str], editing_index: int | None = None) -> Sequence:
        """Store ``path`` as a new sequence or replace the one at ``editing_index``.

        Raises:
            EmptySequenceError: ``path`` has no steps.
            DuplicateStepError: ``path`` repeats a key.
            DuplicateSequenceError: a new path equals a stored one.
            SequenceNotFoundError: ``editing_index`` is out of range.
        """
        sequence = Sequence(validate_path(path))

        if editing_index is not None:
            self._check_index(editing_index)
            previous = self._sequences[editing_index]
            self._sequences[editing_index] = sequence
            logger.debug(
                "sequence_replaced",
                namespace=self.catalog.namespace,
                index=editing_index,
                old=previous.seq_key,
                new=sequence.seq_key,
            )
            return sequence

        if any(s.path == sequence.path for s in self._sequences):
            raise DuplicateSequenceError(sequence.seq_key)
        self._sequences.insert(0, sequence)
        logger.debug("sequence_saved", namespace=self.catalog.namespace, seq_key=sequence.seq_key)
        return sequence

    def delete(self, index: int) -> Sequence:
        self._check_index(index)
        removed = self._sequences.pop(index)
        logger.debug("sequence_deleted", namespace=self.catalog.namespace, seq_key=removed.seq_key)
        return removed

    def merge(self, paths: Iterable[SequenceLike[str]]) -> list[Sequence]:
        """Append every path not already stored; returns the ones added.

        Each path is validated like :meth:`save`; paths equal to a stored
        sequence (or to an earlier path of the same batch) are skipped.
        """
        added: list[Sequence] = []
        for path in paths:
            sequence = Sequence(validate_path(path))
            if any(s.path == sequence.path for s in self._sequences):
                continue
            self._sequences.append(sequence)
            added.append(sequence)
        if added:
            logger.info("sequences_merged", namespace=self.catalog.namespace, added=len(added))
        return added

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get(self, index: int) -> Sequence:
        self._check_index(index)
        return self._sequences[index]

    def find(self, seq_key: str) -> Sequence:
        for sequence in self._sequences:
            if sequence.seq_key == seq_key:
                return sequence
        raise SequenceNotFoundError(seq_key)

    def starting_with(self, b_key: str) -> list[Sequence]:
        return [s for s in self._sequences if s.head == b_key]

    def title(self, path: Iterable[str]) -> str:
        return TITLE_SEPARATOR.join(self.catalog.display_label(b) for b in path)

    def tokens(self, path: Iterable[str]) -> tuple[str, ...]:
        return tuple(self.catalog.resolve_token(b) for b in path)

    def describe(self, sequence: Sequence) -> SequenceView:
        return SequenceView(
            seq_key=sequence.seq_key,
            title=self.title(sequence.path),
            tokens=self.tokens(sequence.path),
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._sequences):
            raise SequenceNotFoundError(index)
