"""
Tests for the Typer CLI.

Every command runs against a temporary database passed with ``--database``.
Assertions on tables stick to short values because Rich folds long cells.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from langfactory import __version__
from langfactory.cli.app import app

runner = CliRunner()


@pytest.fixture
def db(db_path) -> list[str]:
    return ["--database", db_path]


@pytest.fixture
def animals(db) -> str:
    result = runner.invoke(app, ["namespace", "create", "animals", *db])
    assert result.exit_code == 0, result.output
    return "animals"


@pytest.fixture
def workspace_file(tmp_path, workspace_doc):
    path = tmp_path / "workspace.json"
    path.write_text(json.dumps(workspace_doc), encoding="utf-8")
    return path


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"langfactory {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "namespace" in result.output


class TestNamespaceCommands:
    def test_create_and_list(self, db):
        result = runner.invoke(app, ["namespace", "create", "animals", "--language", "fr", "--json", *db])
        assert result.exit_code == 0
        assert '"status": "created"' in result.output

        listed = runner.invoke(app, ["namespace", "list", *db])
        assert listed.exit_code == 0
        assert "animals" in listed.output

    def test_invalid_slug_exits_1(self, db):
        result = runner.invoke(app, ["namespace", "create", "Bad Slug", *db])
        assert result.exit_code == 1
        assert "VALIDATION_FAILED" in result.output

    def test_invalid_meta(self, db):
        result = runner.invoke(app, ["namespace", "create", "animals", "--meta", "{nope", *db])
        assert result.exit_code == 1


class TestCatalogCommands:
    def test_import_and_show(self, tmp_path, db, animals, catalog_entries):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"entries": catalog_entries}), encoding="utf-8")

        result = runner.invoke(app, ["catalog", "import", animals, str(path), *db])
        assert result.exit_code == 0, result.output
        assert "Saved" in result.output

        shown = runner.invoke(app, ["catalog", "show", animals, "--json", *db])
        assert shown.exit_code == 0
        assert '"value_b": "Entries"' in shown.output

    def test_import_dry_run(self, tmp_path, db, animals, catalog_entries):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(catalog_entries), encoding="utf-8")

        result = runner.invoke(app, ["catalog", "import", animals, str(path), "--dry-run", *db])
        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert "Catalog is empty" in runner.invoke(app, ["catalog", "show", animals, *db]).output

    def test_import_missing_file(self, tmp_path, db, animals):
        result = runner.invoke(app, ["catalog", "import", animals, str(tmp_path / "nope.json"), *db])
        assert result.exit_code == 1

    def test_set_entry(self, db, animals):
        result = runner.invoke(
            app, ["catalog", "set", animals, "column B-1", "--value-a", "Cat", "--value-b", "Cats", "--json", *db]
        )
        assert result.exit_code == 0, result.output
        assert '"persistence": "saved"' in result.output

    def test_set_matching_pair_fails(self, db, animals):
        result = runner.invoke(app, ["catalog", "set", animals, "column B-1", "-a", "Cat", "-b", "cat", *db])
        assert result.exit_code == 1


class TestPublishCommands:
    def test_workspace_dry_run(self, db, animals, workspace_file):
        result = runner.invoke(app, ["publish", "workspace", animals, str(workspace_file), "--dry-run", "--json", *db])
        assert result.exit_code == 0, result.output
        assert '"identifier": "cat-E-1-Form-1"' in result.output

    def test_workspace_with_refresh(self, db, animals, workspace_file):
        result = runner.invoke(app, ["publish", "workspace", animals, str(workspace_file), "--refresh", *db])
        assert result.exit_code == 0, result.output
        assert "inserted=3" in result.output
        assert "refreshed" in result.output

        shown = runner.invoke(app, ["publish", "show", animals, "--json", *db])
        assert '"value": "feline"' in shown.output

    def test_pair_and_archive(self, db, animals):
        assert runner.invoke(app, ["publish", "pair", animals, "dog", "D1", *db]).exit_code == 0
        result = runner.invoke(app, ["publish", "pair", animals, "dog", "D2", "--reason", "fix", *db])
        assert result.exit_code == 0
        assert "updated=1" in result.output

        active = runner.invoke(app, ["publish", "show", animals, "-i", "dog", "--json", *db])
        assert '"value": "D2"' in active.output

        archived = runner.invoke(app, ["publish", "archive", animals, "--json", *db])
        assert archived.exit_code == 0
        assert '"value": "D1"' in archived.output
        assert '"total": 1' in archived.output

    def test_refresh(self, db, animals):
        runner.invoke(app, ["publish", "pair", animals, "dog", "D", *db])
        result = runner.invoke(app, ["publish", "refresh", animals, "--json", *db])
        assert result.exit_code == 0
        assert '"rows": 1' in result.output

    def test_unknown_namespace(self, db):
        result = runner.invoke(app, ["publish", "pair", "missing", "dog", "D", *db])
        assert result.exit_code == 1
        assert "NOT_FOUND" in result.output


class TestServeCommand:
    def test_start_runs_app_factory(self):
        with patch("langfactory.cli.serve.uvicorn.run") as run:
            result = runner.invoke(app, ["serve", "start", "--port", "9000"])
        assert result.exit_code == 0
        args, kwargs = run.call_args
        assert args == ("langfactory.api:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9000
