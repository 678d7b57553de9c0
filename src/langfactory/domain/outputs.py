"""Output text helpers: the filled-output rule and headword parsing."""

from __future__ import annotations

import re

PLACEHOLDER = "enter output value"
"""Sentinel written into rows created by quick-add; never published."""

_WORD_SPLIT = re.compile(r"[,\n]")


def is_filled_output(output: str | None) -> bool:
    """True when ``output`` holds real content.

    Empty, whitespace-only and placeholder text (in any case) are unfilled.
    """
    if output is None:
        return False
    trimmed = output.strip()
    return bool(trimmed) and trimmed.casefold() != PLACEHOLDER


def export_value(output: str | None) -> str:
    """Value written to the store for a row; ``""`` for unfilled rows."""
    return output if is_filled_output(output) else ""


def parse_words(text: str) -> list[str]:
    """Split pasted headwords on commas and newlines, dropping blanks."""
    return [word.strip() for word in _WORD_SPLIT.split(text or "") if word.strip()]
