"""
Record types for the identifier factory.

Every record crossing a boundary (workspace JSON, API body, database row) is
parsed by a ``from_dict`` constructor that checks required fields and types
and raises :class:`~langfactory.core.errors.MalformedRecordError` otherwise.
Inside the domain only these dataclasses circulate.

Architecture:
    ::

        CatalogEntry ──► Sequence (path of b_keys) ──► SequenceView
                                                       (seq_key, title, tokens)
        EntryBlock (block, rows[EntryRow]) ──► ExportPair (identifier, value)
                                                   │
                                                   ▼
                                PublishedRecord / ArchiveRecord (store)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from langfactory.core.errors import MalformedRecordError

SEQ_KEY_SEPARATOR = "|"
B_KEY_PREFIX = "column B-"
C_KEY_PREFIX = "column C-"


def b_key_for(n: int) -> str:
    """Structural key of position ``n`` (1-based) of the catalog enumeration."""
    return f"{B_KEY_PREFIX}{n}"


def c_key_for(b_key: str) -> str:
    """Counterpart key: ``"column B-3"`` becomes ``"column C-3"``."""
    if b_key.startswith(B_KEY_PREFIX):
        return C_KEY_PREFIX + b_key[len(B_KEY_PREFIX):]
    return C_KEY_PREFIX + b_key


def _require(data: Mapping[str, Any], key: str, kind: type | tuple[type, ...], record: str) -> Any:
    if not isinstance(data, Mapping):
        raise MalformedRecordError(f"{record} must be an object, got {type(data).__name__}")
    if key not in data:
        raise MalformedRecordError(f"{record} is missing required field {key!r}", field=key)
    value = data[key]
    # bool is an int subclass; integer fields must reject it explicitly
    if kind is int and isinstance(value, bool):
        raise MalformedRecordError(f"{record}.{key} must be int", field=key, value=value)
    if not isinstance(value, kind):
        expected = kind.__name__ if isinstance(kind, type) else "/".join(k.__name__ for k in kind)
        raise MalformedRecordError(f"{record}.{key} must be {expected}", field=key, value=value)
    return value


def _optional(data: Mapping[str, Any], key: str, kind: type, record: str, default: Any) -> Any:
    if data.get(key) is None:
        return default
    return _require(data, key, kind, record)


# =============================================================================
# CATALOG
# =============================================================================


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One catalog row: a structural key plus two free-text values.

    Attributes:
        b_key: Structural key, e.g. ``"column B-3"``.
        c_key: Counterpart key, e.g. ``"column C-3"``.
        value_a: Token value used when composing identifiers.
        value_b: Display value used in sequence titles.
    """

    b_key: str
    c_key: str
    value_a: str = ""
    value_b: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CatalogEntry:
        b_key = _require(data, "b_key", str, "CatalogEntry")
        if not b_key.strip():
            raise MalformedRecordError("CatalogEntry.b_key must not be empty", field="b_key")
        return cls(
            b_key=b_key,
            c_key=_optional(data, "c_key", str, "CatalogEntry", c_key_for(b_key)),
            value_a=_optional(data, "value_a", str, "CatalogEntry", ""),
            value_b=_optional(data, "value_b", str, "CatalogEntry", ""),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "b_key": self.b_key,
            "c_key": self.c_key,
            "value_a": self.value_a,
            "value_b": self.value_b,
        }


# =============================================================================
# SEQUENCES
# =============================================================================


@dataclass(frozen=True, slots=True)
class Sequence:
    """An ordered path of catalog keys."""

    path: tuple[str, ...]

    @property
    def seq_key(self) -> str:
        return SEQ_KEY_SEPARATOR.join(self.path)

    @property
    def head(self) -> str:
        return self.path[0]

    def __len__(self) -> int:
        return len(self.path)

    @classmethod
    def from_value(cls, value: Any) -> Sequence:
        if not isinstance(value, (list, tuple)):
            raise MalformedRecordError("Sequence path must be a list of keys", value=value)
        for step in value:
            if not isinstance(step, str):
                raise MalformedRecordError("Sequence steps must be strings", value=step)
        return cls(tuple(value))


@dataclass(frozen=True, slots=True)
class SequenceView:
    """A sequence resolved against its catalog."""

    seq_key: str
    title: str
    tokens: tuple[str, ...]


# =============================================================================
# ENTRIES
# =============================================================================


@dataclass(slots=True)
class EntryRow:
    """Content attached to one position of a sequence.

    Attributes:
        token_index: 0-based position along the parent path.
        dec: Sub-version at that position, starting at 1.
        output: Free-text content.
        db_skip_row: When set, the row is never published.
    """

    token_index: int
    dec: int = 1
    output: str = ""
    db_skip_row: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntryRow:
        token_index = _require(data, "token_index", int, "EntryRow")
        if token_index < 0:
            raise MalformedRecordError("EntryRow.token_index must be >= 0", field="token_index", value=token_index)
        dec = _optional(data, "dec", int, "EntryRow", 1)
        if dec < 1:
            raise MalformedRecordError("EntryRow.dec must be >= 1", field="dec", value=dec)
        return cls(
            token_index=token_index,
            dec=dec,
            output=_optional(data, "output", str, "EntryRow", ""),
            db_skip_row=_optional(data, "db_skip_row", bool, "EntryRow", False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_index": self.token_index,
            "dec": self.dec,
            "output": self.output,
            "db_skip_row": self.db_skip_row,
        }


@dataclass(slots=True)
class EntryBlock:
    """A numbered group of rows within one sequence."""

    block: int
    rows: list[EntryRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntryBlock:
        block = _require(data, "block", int, "EntryBlock")
        if block < 1:
            raise MalformedRecordError("EntryBlock.block must be >= 1", field="block", value=block)
        rows = _optional(data, "rows", list, "EntryBlock", [])
        return cls(block=block, rows=[EntryRow.from_dict(r) for r in rows])

    def to_dict(self) -> dict[str, Any]:
        return {"block": self.block, "rows": [r.to_dict() for r in self.rows]}


# =============================================================================
# PUBLISHING
# =============================================================================


@dataclass(frozen=True, slots=True)
class ExportPair:
    """An (identifier, value) pair ready for publishing."""

    identifier: str
    value: str

    @classmethod
    def from_value(cls, data: Any) -> ExportPair:
        """Accept ``{"identifier": ..., "value": ...}`` or a 2-item sequence."""
        if isinstance(data, ExportPair):
            return data
        if isinstance(data, Mapping):
            identifier = _require(data, "identifier", str, "ExportPair")
            value = _require(data, "value", str, "ExportPair")
        elif isinstance(data, (list, tuple)) and len(data) == 2:
            identifier, value = data
            if not isinstance(identifier, str) or not isinstance(value, str):
                raise MalformedRecordError("ExportPair items must be strings", value=data)
        else:
            raise MalformedRecordError("ExportPair must be an object or [identifier, value]", value=data)
        if not identifier:
            raise MalformedRecordError("ExportPair.identifier must not be empty", field="identifier")
        return cls(identifier, value)

    def to_dict(self) -> dict[str, str]:
        return {"identifier": self.identifier, "value": self.value}


@dataclass(frozen=True, slots=True)
class Namespace:
    """A provisioned publish target (one reason slug)."""

    slug: str
    language: str = "en"
    tenant: str = ""
    status: str = "active"
    created_at: str | None = None
    updated_at: str | None = None
    created_by: str | None = None
    updated_by: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "language": self.language,
            "tenant": self.tenant or None,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
            "meta": dict(self.meta),
        }


@dataclass(frozen=True, slots=True)
class PublishedRecord:
    """The active value of one identifier."""

    identifier: str
    value: str
    version: int
    language: str = "en"
    tenant: str = ""
    status: str = "active"
    updated_at: str | None = None
    updated_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "value": self.value,
            "version": self.version,
            "language": self.language,
            "tenant": self.tenant or None,
            "status": self.status,
            "updated_at": self.updated_at,
            "updated_by": self.updated_by,
        }


@dataclass(frozen=True, slots=True)
class ArchiveRecord:
    """A superseded value, written before the active record changed."""

    identifier: str
    value: str
    version: int
    archived_at: str
    reason: str
    batch_id: str | None = None
    language: str = "en"
    tenant: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "value": self.value,
            "version": self.version,
            "archived_at": self.archived_at,
            "reason": self.reason,
            "batch_id": self.batch_id,
            "language": self.language,
            "tenant": self.tenant or None,
        }


__all__ = [
    "SEQ_KEY_SEPARATOR",
    "b_key_for",
    "c_key_for",
    "CatalogEntry",
    "Sequence",
    "SequenceView",
    "EntryRow",
    "EntryBlock",
    "ExportPair",
    "Namespace",
    "PublishedRecord",
    "ArchiveRecord",
]
