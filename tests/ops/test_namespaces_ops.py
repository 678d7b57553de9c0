"""Tests for namespace operations."""

from langfactory.ops.namespaces import create_namespace, get_namespace, list_namespaces
from langfactory.ops.requests import CreateNamespaceRequest


class TestCreateNamespace:
    def test_created_then_exists(self, ctx):
        first = create_namespace(ctx, CreateNamespaceRequest(slug="animals", language="fr"))
        assert first.success
        assert first.data["status"] == "created"
        assert first.data["namespace"]["language"] == "fr"

        second = create_namespace(ctx, CreateNamespaceRequest(slug="animals"))
        assert second.data["status"] == "exists"

    def test_default_language_from_settings(self, ctx):
        result = create_namespace(ctx, CreateNamespaceRequest(slug="animals"))
        assert result.data["namespace"]["language"] == ctx.settings.default_language

    def test_user_is_recorded(self, ctx):
        ctx.user = "ed"
        result = create_namespace(ctx, CreateNamespaceRequest(slug="animals"))
        assert result.data["namespace"]["created_by"] == "ed"

    def test_invalid_slug(self, ctx):
        result = create_namespace(ctx, CreateNamespaceRequest(slug="Not Valid"))
        assert not result.success
        assert result.error.code == "VALIDATION_FAILED"
        assert result.error.details["field"] == "slug"

    def test_dry_run_writes_nothing(self, ctx):
        ctx.dry_run = True
        result = create_namespace(ctx, CreateNamespaceRequest(slug="animals"))
        assert result.data == {"dry_run": True, "would_ensure": "animals"}
        ctx.dry_run = False
        assert list_namespaces(ctx).data == []


class TestReadNamespaces:
    def test_list_and_get(self, ctx, namespace):
        assert [n["slug"] for n in list_namespaces(ctx).data] == ["animals"]
        assert get_namespace(ctx, "animals").data["slug"] == "animals"

    def test_get_missing(self, ctx):
        result = get_namespace(ctx, "missing")
        assert result.error.code == "NOT_FOUND"
