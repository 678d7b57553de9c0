"""Tests for namespace provisioning."""

import pytest

from langfactory.core.errors import InvalidNamespaceSlugError, NamespaceNotFoundError
from langfactory.store.namespaces import EnsureStatus, NamespaceRepository, validate_slug


def _tables(conn) -> set[str]:
    conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row["name"] for row in conn.fetchall()}


class TestValidateSlug:
    @pytest.mark.parametrize("slug", ["animals", "fr_demo", "a-1", "x" * 64])
    def test_valid(self, slug):
        assert validate_slug(slug) == slug

    @pytest.mark.parametrize("slug", ["", "Animals", "fr demo", "a;drop", "x" * 65, None])
    def test_invalid(self, slug):
        with pytest.raises(InvalidNamespaceSlugError):
            validate_slug(slug)


class TestEnsure:
    def test_creates_tables(self, conn):
        ns, status = NamespaceRepository(conn).ensure("fr-demo", language="fr", tenant="acme")
        assert status is EnsureStatus.CREATED
        assert (ns.language, ns.tenant) == ("fr", "acme")
        assert {
            "text_reason_fr-demo",
            "text_reason_fr-demo_archive",
            "mv_text_reason_fr-demo_published",
        } <= _tables(conn)

    def test_is_idempotent(self, conn):
        repo = NamespaceRepository(conn)
        first, _ = repo.ensure("animals", meta={"owner": "lexicon"})
        second, status = repo.ensure("animals", language="de")
        assert status is EnsureStatus.EXISTS
        assert second.language == first.language == "en"
        assert second.meta == {"owner": "lexicon"}

    def test_missing_tenant_is_blank(self, conn):
        ns, _ = NamespaceRepository(conn).ensure("animals")
        assert ns.tenant == ""
        assert ns.to_dict()["tenant"] is None

    def test_invalid_slug(self, conn):
        with pytest.raises(InvalidNamespaceSlugError):
            NamespaceRepository(conn).ensure("Bad Slug")


class TestQueries:
    def test_get_missing(self, conn):
        with pytest.raises(NamespaceNotFoundError):
            NamespaceRepository(conn).get("nothing")

    def test_list_all_sorted(self, conn):
        repo = NamespaceRepository(conn)
        repo.ensure("zebras")
        repo.ensure("animals")
        assert [n.slug for n in repo.list_all()] == ["animals", "zebras"]
