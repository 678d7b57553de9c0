"""
Shared pytest fixtures for langfactory tests.

This module provides:
- A file-backed SQLite connection per test (``tmp_path``)
- A provisioned ``animals`` namespace
- Settings and an ``OperationContext`` wired to the same database
- A small workspace document used across domain, ops, API and CLI tests
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from langfactory.core.settings import FactorySettings
from langfactory.core.sqlite_conn import SqliteConnection
from langfactory.domain.models import Namespace
from langfactory.ops.context import OperationContext, connection_factory
from langfactory.store.namespaces import NamespaceRepository

SEQ_KEY = "column B-1|column B-2|column B-3"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without an explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "factory.db")


@pytest.fixture
def conn(db_path) -> Generator[SqliteConnection, None, None]:
    connection = SqliteConnection(db_path)
    yield connection
    connection.close()


@pytest.fixture
def namespace(conn) -> Namespace:
    ns, _ = NamespaceRepository(conn).ensure("animals")
    return ns


@pytest.fixture
def settings(db_path) -> FactorySettings:
    return FactorySettings(
        database_url=db_path,
        publish_base_delay=0.0,
        publish_max_delay=0.0,
        autosave_delay=30.0,
    )


@pytest.fixture
def ctx(conn, settings) -> OperationContext:
    return OperationContext(conn=conn, settings=settings, connect=connection_factory(settings), caller="test")


# =============================================================================
# Sample Documents
# =============================================================================


@pytest.fixture
def catalog_entries() -> list[dict[str, str]]:
    return [
        {"b_key": "column B-1", "value_a": "Animal", "value_b": "Animals"},
        {"b_key": "column B-2", "value_a": "E", "value_b": "Entries"},
        {"b_key": "column B-3", "value_a": "Form", "value_b": "Forms"},
    ]


@pytest.fixture
def workspace_doc(catalog_entries) -> dict[str, Any]:
    """One sequence, one block; three of its five rows are exportable."""
    return {
        "namespace": "animals",
        "catalog": catalog_entries,
        "sequences": [["column B-1", "column B-2", "column B-3"]],
        "entries": {
            SEQ_KEY: [
                {
                    "block": 1,
                    "rows": [
                        {"token_index": 0, "dec": 1, "output": "cat"},
                        {"token_index": 1, "dec": 1, "output": "feline"},
                        {"token_index": 1, "dec": 2, "output": "kitty", "db_skip_row": True},
                        {"token_index": 2, "dec": 1, "output": "cats"},
                        {"token_index": 2, "dec": 2, "output": "Enter Output Value"},
                    ],
                }
            ]
        },
    }


@pytest.fixture
def expected_pairs() -> list[tuple[str, str]]:
    return [("cat", "cat"), ("cat-E-1", "feline"), ("cat-E-1-Form-1", "cats")]
