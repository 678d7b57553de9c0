"""
Catalog: paired label values with namespace-wide uniqueness.

Each catalog entry carries two free-text values. Across one namespace every
non-empty value must be distinct from every other entry's values, compared
case-folded unless case-sensitive mode is on. Optionally the two values of a
single entry must differ as well (``enforce_no_match``).

Manifesto:
    - **Reject, never repair:** a failed upsert leaves the catalog unchanged
    - **Only what changed is checked:** stored values are not re-validated
      when an unrelated field of the same entry is edited
    - **One lock:** the read-check-write of an upsert is a single critical
      section

Examples:
    >>> catalog = Catalog("animals")
    >>> catalog.upsert("column B-1", "Animal", "Animals")
    CatalogEntry(b_key='column B-1', c_key='column C-1', value_a='Animal', value_b='Animals')
    >>> catalog.upsert("column B-2", "animal")
    Traceback (most recent call last):
    ...
    DuplicateValueError: Value 'animal' is already used by column B-1
    >>> catalog.resolve_token("column B-1"), catalog.display_label("column B-1")
    ('Animal', 'Animals')

Tags:
    catalog, uniqueness, validation
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

from langfactory.core.errors import DuplicateValueError, MalformedRecordError, MatchingPairError
from langfactory.core.logging import get_logger
from langfactory.domain.models import CatalogEntry, b_key_for, c_key_for

logger = get_logger(__name__)


def _fold(value: str, case_sensitive: bool) -> str:
    return value if case_sensitive else value.casefold()


class Catalog:
    """The catalog of one namespace.

    Args:
        namespace: Namespace slug, used for log context only.
        case_sensitive: Default comparison mode for :meth:`upsert`.
        enforce_no_match: Default within-entry rule for :meth:`upsert`.
    """

    def __init__(
        self,
        namespace: str = "",
        *,
        case_sensitive: bool = False,
        enforce_no_match: bool = True,
    ) -> None:
        self.namespace = namespace
        self.case_sensitive = case_sensitive
        self.enforce_no_match = enforce_no_match
        self._entries: dict[str, CatalogEntry] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_entries(
        cls,
        namespace: str,
        entries: Iterable[CatalogEntry],
        *,
        case_sensitive: bool = False,
        enforce_no_match: bool = True,
    ) -> Catalog:
        """Rebuild a catalog by replaying entries through :meth:`upsert`.

        Stored catalogs are re-validated on load; a persisted duplicate
        raises the same error an editor would have seen.
        """
        catalog = cls(namespace, case_sensitive=case_sensitive, enforce_no_match=enforce_no_match)
        for entry in entries:
            if entry.b_key in catalog:
                raise MalformedRecordError(f"Catalog lists {entry.b_key!r} twice", field="b_key", value=entry.b_key)
            catalog.upsert(entry.b_key, entry.value_a, entry.value_b)
        return catalog

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def upsert(
        self,
        b_key: str,
        value_a: str | None = None,
        value_b: str | None = None,
        *,
        case_sensitive: bool | None = None,
        enforce_no_match: bool | None = None,
    ) -> CatalogEntry:
        """Create or update the entry at ``b_key``.

        ``None`` keeps a stored value, ``""`` clears it. Values are stored
        trimmed.

        Raises:
            MatchingPairError: ``enforce_no_match`` is on and the resulting
                values are equal.
            DuplicateValueError: an incoming non-empty value is already used
                by another entry.
        """
        if not isinstance(b_key, str) or not b_key.strip():
            raise MalformedRecordError("Catalog key must be a non-empty string", field="b_key", value=b_key)
        sensitive = self.case_sensitive if case_sensitive is None else case_sensitive
        no_match = self.enforce_no_match if enforce_no_match is None else enforce_no_match

        with self._lock:
            current = self._entries.get(b_key)
            new_a = (current.value_a if current else "") if value_a is None else value_a.strip()
            new_b = (current.value_b if current else "") if value_b is None else value_b.strip()

            if no_match and new_a and new_b and _fold(new_a, sensitive) == _fold(new_b, sensitive):
                raise MatchingPairError(b_key, new_a)

            changed = [
                (name, value)
                for name, value, given in (("value_a", new_a, value_a), ("value_b", new_b, value_b))
                if given is not None and value
            ]
            if changed:
                used = self._used_values(exclude=b_key, case_sensitive=sensitive)
                for name, value in changed:
                    owner = used.get(_fold(value, sensitive))
                    if owner is not None:
                        raise DuplicateValueError(value, owner=owner, field=name)

            entry = CatalogEntry(
                b_key=b_key,
                c_key=current.c_key if current else c_key_for(b_key),
                value_a=new_a,
                value_b=new_b,
            )
            self._entries[b_key] = entry

        logger.debug(
            "catalog_entry_upserted",
            namespace=self.namespace,
            b_key=b_key,
            created=current is None,
        )
        return entry

    def _used_values(self, *, exclude: str, case_sensitive: bool) -> dict[str, str]:
        used: dict[str, str] = {}
        for key, entry in self._entries.items():
            if key == exclude:
                continue
            for value in (entry.value_a, entry.value_b):
                if value:
                    used[_fold(value, case_sensitive)] = key
        return used

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def lookup(self, b_key: str) -> CatalogEntry | None:
        return self._entries.get(b_key)

    def resolve_token(self, b_key: str) -> str:
        """Token used in identifiers: ``value_a``, else the key itself."""
        entry = self._entries.get(b_key)
        if entry and entry.value_a:
            return entry.value_a
        return b_key

    def display_label(self, b_key: str) -> str:
        """Human label used in titles: ``value_b``, else ``value_a``, else the key."""
        entry = self._entries.get(b_key)
        if entry is None:
            return b_key
        return entry.value_b or entry.value_a or b_key

    def entries(self) -> list[CatalogEntry]:
        with self._lock:
            return list(self._entries.values())

    def next_b_key(self) -> str:
        """Structural key for a new entry appended to the enumeration."""
        with self._lock:
            return b_key_for(len(self._entries) + 1)

    def __contains__(self, b_key: object) -> bool:
        return b_key in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["Catalog", "b_key_for", "c_key_for"]
