"""Tests for catalog operations."""

from langfactory.ops.catalog import get_catalog, save_catalog, update_catalog_entry
from langfactory.ops.context import connection_factory
from langfactory.ops.requests import SaveCatalogRequest, UpdateCatalogEntryRequest
from langfactory.store.catalogs import CatalogAutosaver, CatalogRepository


class TestSaveCatalog:
    def test_save_and_get(self, ctx, namespace, catalog_entries):
        result = save_catalog(ctx, SaveCatalogRequest(namespace="animals", entries=catalog_entries))
        assert result.success
        assert result.data["saved"] == 3

        loaded = get_catalog(ctx, "animals")
        assert [e["value_a"] for e in loaded.data["entries"]] == ["Animal", "E", "Form"]
        assert loaded.data["pending"] is False

    def test_duplicate_value_is_rejected(self, ctx, namespace, catalog_entries):
        catalog_entries.append({"b_key": "column B-4", "value_b": "animal"})
        result = save_catalog(ctx, SaveCatalogRequest(namespace="animals", entries=catalog_entries))
        assert result.error.code == "VALIDATION_FAILED"
        assert CatalogRepository(ctx.conn).load("animals") == []

    def test_malformed_entry(self, ctx, namespace):
        result = save_catalog(ctx, SaveCatalogRequest(namespace="animals", entries=[{"value_a": "x"}]))
        assert result.error.code == "INVALID_INPUT"

    def test_unknown_namespace(self, ctx):
        result = save_catalog(ctx, SaveCatalogRequest(namespace="missing", entries=[]))
        assert result.error.code == "NOT_FOUND"

    def test_dry_run(self, ctx, namespace, catalog_entries):
        ctx.dry_run = True
        result = save_catalog(ctx, SaveCatalogRequest(namespace="animals", entries=catalog_entries))
        assert result.data["dry_run"] is True
        assert CatalogRepository(ctx.conn).load("animals") == []


class TestUpdateCatalogEntry:
    def test_saves_immediately_without_autosaver(self, ctx, namespace):
        result = update_catalog_entry(
            ctx, UpdateCatalogEntryRequest(namespace="animals", b_key="column B-1", value_a="Animal")
        )
        assert result.data["persistence"] == "saved"
        assert result.data["entry"]["c_key"] == "column C-1"
        assert len(CatalogRepository(ctx.conn).load("animals")) == 1

    def test_matching_pair(self, ctx, namespace):
        result = update_catalog_entry(
            ctx,
            UpdateCatalogEntryRequest(namespace="animals", b_key="column B-1", value_a="Cat", value_b="cat"),
        )
        assert result.error.code == "VALIDATION_FAILED"

    def test_autosaver_coalesces_edits(self, ctx, namespace, settings):
        autosaver = CatalogAutosaver(connection_factory(settings), delay=None)
        try:
            for b_key, value in (("column B-1", "Animal"), ("column B-2", "Form")):
                result = update_catalog_entry(
                    ctx,
                    UpdateCatalogEntryRequest(namespace="animals", b_key=b_key, value_a=value),
                    autosaver=autosaver,
                )
                assert result.data["persistence"] == "scheduled"

            pending = get_catalog(ctx, "animals", autosaver=autosaver)
            assert pending.data["pending"] is True
            assert len(pending.data["entries"]) == 2
            assert CatalogRepository(ctx.conn).load("animals") == []
        finally:
            autosaver.close()
        assert len(CatalogRepository(ctx.conn).load("animals")) == 2

    def test_full_save_flushes_pending_edits_first(self, ctx, namespace, settings, catalog_entries):
        autosaver = CatalogAutosaver(connection_factory(settings), delay=None)
        try:
            update_catalog_entry(
                ctx,
                UpdateCatalogEntryRequest(namespace="animals", b_key="column B-9", value_a="Stale"),
                autosaver=autosaver,
            )
            save_catalog(ctx, SaveCatalogRequest(namespace="animals", entries=catalog_entries), autosaver=autosaver)
        finally:
            autosaver.close()
        assert [e.b_key for e in CatalogRepository(ctx.conn).load("animals")] == [
            "column B-1",
            "column B-2",
            "column B-3",
        ]
