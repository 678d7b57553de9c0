"""
Identifier Composer.

Derives the identifier of one content row from the tokens of its sequence
and the row's coordinates. The function is pure: equal inputs always give
equal identifiers, which is what makes re-publishing idempotent.

Composition, for ``i`` in ``0..token_index``::

    i == 0   →  headword, else tokens[0]
    i  > 0   →  f"{tokens[i]}-{suffix}"   suffix = dec if tokens[i] == "E" else block

Parts are joined with ``"-"``.

Examples:
    >>> compose_id(["Animal", "E", "Form"], 2, block=3, dec=5, headword="cat")
    'cat-E-5-Form-3'
    >>> compose_id(["Animal", "Kind"], 1, block=2, dec=1)
    'Animal-Kind-2'
"""

from __future__ import annotations

from collections.abc import Sequence

from langfactory.core.errors import MalformedRecordError
from langfactory.domain.models import EntryBlock
from langfactory.domain.outputs import is_filled_output

DEC_TOKEN = "E"
"""Token whose suffix is the row's ``dec`` rather than its block number."""

ID_SEPARATOR = "-"


def compose_id(
    tokens: Sequence[str],
    token_index: int,
    block: int,
    dec: int = 1,
    headword: str | None = None,
) -> str:
    """Build the identifier for a row at ``token_index`` of a sequence.

    Raises:
        MalformedRecordError: ``token_index`` is outside ``tokens``.
    """
    if not 0 <= token_index < len(tokens):
        raise MalformedRecordError(
            f"token_index {token_index} is outside a path of {len(tokens)} steps",
            field="token_index",
            value=token_index,
        )

    parts: list[str] = []
    for i in range(token_index + 1):
        if i == 0:
            parts.append(headword if headword is not None else tokens[0])
            continue
        label = tokens[i]
        suffix = dec if label == DEC_TOKEN else block
        parts.append(f"{label}{ID_SEPARATOR}{suffix}")
    return ID_SEPARATOR.join(parts)


def headword_override(block: EntryBlock) -> str | None:
    """First filled output at position 0 of ``block``, by ascending ``dec``.

    Inclusion flags are ignored: an excluded headword row still names the
    block.
    """
    head_rows = sorted((r for r in block.rows if r.token_index == 0), key=lambda r: r.dec)
    for row in head_rows:
        if is_filled_output(row.output):
            return row.output
    return None
