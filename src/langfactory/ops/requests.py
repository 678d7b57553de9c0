"""
Typed request objects for operations.

Each dataclass represents the *input* contract for a single operation
function. Requests carry transport-agnostic data: no raw HTTP bodies, no
Typer params. Nested records (catalog entries, workspace documents, pairs)
stay as plain dicts here and are parsed by the domain ``from_dict``
constructors inside the operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Namespaces
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class CreateNamespaceRequest:
    """Request for :func:`langfactory.ops.namespaces.create_namespace`.

    Attributes:
        slug: Namespace slug, ``^[a-z0-9_-]+$``, at most 64 characters.
        language: Language scope; ``None`` uses the configured default.
        tenant: Optional tenant scope.
        meta: Freeform metadata stored with the namespace.
    """

    slug: str
    language: str | None = None
    tenant: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)


# ------------------------------------------------------------------ #
# Catalog
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class SaveCatalogRequest:
    """Replace a namespace's catalog; entries are re-validated."""

    namespace: str
    entries: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UpdateCatalogEntryRequest:
    """Upsert one catalog entry. ``None`` keeps a value, ``""`` clears it."""

    namespace: str
    b_key: str
    value_a: str | None = None
    value_b: str | None = None


# ------------------------------------------------------------------ #
# Publishing
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class PublishRowsRequest:
    """Publish explicit ``(identifier, value)`` pairs."""

    namespace: str
    rows: list[Any] = field(default_factory=list)
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class PublishWorkspaceRequest:
    """Collect exportable pairs from a workspace document and publish them."""

    namespace: str
    workspace: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None
    refresh: bool = False


@dataclass(frozen=True, slots=True)
class ListArchiveRequest:
    namespace: str
    identifier: str | None = None
    limit: int = 100
    offset: int = 0
