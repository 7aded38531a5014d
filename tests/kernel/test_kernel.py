"""Tests for the card kernel: permissioned reads and validated writes."""

import pytest

from jellyfish_core.auth import service
from jellyfish_core.db import get_core
from jellyfish_core.exceptions import (
    AuthenticationError,
    ElementAlreadyExists,
    PermissionsError,
    ResourceNotFound,
    SchemaMismatch,
    SessionExpired,
    UnknownCardType,
    ValidationError,
)
from jellyfish_core.kernel import Kernel
from jellyfish_core.kernel.kernel import _sort_key
from jellyfish_core.utils import isodatetime, uid

TYPES_QUERY = {
    "type": "object",
    "required": ["type"],
    "properties": {"type": {"const": "type@1.0.0"}},
}


def message(actor_id, text="hello", **fields):
    card = {
        "type": "message@1.0.0",
        "data": {
            "actor": actor_id,
            "timestamp": isodatetime.now(),
            "target": actor_id,
            "payload": {"message": text},
        },
    }
    card.update(fields)
    return card


def contact(slug, **fields):
    card = {"slug": slug, "type": "contact@1.0.0", "data": {"profile": {}}}
    card.update(fields)
    return card


class TestInitialize:
    """Tests for the bootstrap."""

    def test_sessions_created(self, kernel):
        assert set(kernel.sessions) == {"admin", "guest"}

    def test_core_and_default_cards_present(self, kernel, admin_session):
        slugs = {card["slug"] for card in kernel.query(admin_session, TYPES_QUERY)}
        assert {"card", "type", "user", "session", "role", "link", "relationship",
                "view", "action", "action-request", "org", "message", "whisper",
                "contact"} <= slugs

    def test_initialize_is_idempotent(self, kernel, admin_session):
        """A second bootstrap reuses the stored cards and sessions."""
        before = kernel.get_card_by_slug(admin_session, "user-admin")

        second = Kernel()
        second.initialize()

        assert second.sessions == kernel.sessions
        after = second.get_card_by_slug(second.sessions["admin"], "user-admin")
        assert after["id"] == before["id"]
        assert after["updated_at"] == before["updated_at"]

    def test_defaults(self):
        card = Kernel.defaults({"slug": "x", "type": "card@1.0.0", "name": None})
        assert card["version"] == "1.0.0"
        assert card["active"] is True
        assert card["links"] == {}
        assert "name" not in card


class TestReads:
    """Tests for lookups and queries."""

    def test_get_card_by_id(self, kernel, admin_session):
        admin = kernel.get_card_by_slug(admin_session, "user-admin")
        assert kernel.get_card_by_id(admin_session, admin["id"])["slug"] == "user-admin"

    def test_get_card_by_id_with_type(self, kernel, admin_session):
        admin = kernel.get_card_by_slug(admin_session, "user-admin")
        assert kernel.get_card_by_id(admin_session, admin["id"], type="session@1.0.0") is None

    def test_get_missing_card(self, kernel, admin_session):
        assert kernel.get_card_by_id(admin_session, uid.generate_uuid()) is None
        assert kernel.get_card_by_slug(admin_session, "no-such-card") is None

    def test_get_card_by_slug_with_bad_version(self, kernel, admin_session):
        with pytest.raises(ValidationError, match="Invalid card reference"):
            kernel.get_card_by_slug(admin_session, "type@notaversion")

    def test_get_card_by_slug_versions(self, kernel, admin_session):
        """Without a version the latest one is returned."""
        kernel.insert_card(admin_session, {"slug": "org-acme", "type": "org@1.0.0", "name": "Acme"})
        kernel.insert_card(admin_session, {
            "slug": "org-acme", "type": "org@1.0.0", "name": "Acme 2", "version": "1.1.0"
        })

        assert kernel.get_card_by_slug(admin_session, "org-acme")["version"] == "1.1.0"
        assert kernel.get_card_by_slug(admin_session, "org-acme@latest")["version"] == "1.1.0"
        assert kernel.get_card_by_slug(admin_session, "org-acme@1.0.0")["name"] == "Acme"

    def test_write_only_properties_hidden(self, kernel, admin_session, test_user):
        """Password hashes are stored but never returned."""
        user = kernel.get_card_by_id(admin_session, test_user["user"]["id"])
        assert "hash" not in user["data"]

        core = get_core()
        raw = core.card.get_by_id(test_user["user"]["id"])
        assert raw["data"]["hash"].startswith("$2")

    def test_query_with_view_card(self, kernel, admin_session, test_user):
        kernel.insert_card(test_user["session"], message(test_user["user"]["id"]))
        view = kernel.get_card_by_slug(admin_session, "view-all-messages")

        results = kernel.query(admin_session, view)
        assert len(results) == 1
        assert results[0]["type"] == "message@1.0.0"

    def test_query_paging_and_sorting(self, kernel, admin_session):
        ascending = kernel.query(admin_session, TYPES_QUERY, sort_by="slug")
        slugs = [card["slug"] for card in ascending]
        assert slugs == sorted(slugs)

        descending = kernel.query(admin_session, TYPES_QUERY, sort_by="slug", sort_dir="desc")
        assert [card["slug"] for card in descending] == list(reversed(slugs))

        page = kernel.query(admin_session, TYPES_QUERY, sort_by="slug", skip=2, limit=3)
        assert [card["slug"] for card in page] == slugs[2:5]

    def test_query_sort_by_nested_path(self, kernel, test_user):
        session = test_user["session"]
        actor = test_user["user"]["id"]
        kernel.insert_card(session, message(actor, "b"))
        kernel.insert_card(session, message(actor, "a"))

        results = kernel.query(session, {
            "type": "object",
            "required": ["type"],
            "properties": {"type": {"const": "message@1.0.0"}},
        }, sort_by="data.payload.message")
        assert [card["data"]["payload"]["message"] for card in results] == ["a", "b"]

    def test_invalid_session(self, kernel):
        with pytest.raises(AuthenticationError):
            kernel.query(uid.generate_uuid(), TYPES_QUERY)

    def test_expired_session(self, kernel, admin_session, test_user):
        expired = kernel.insert_card(admin_session, {
            "type": "session@1.0.0",
            "data": {
                "actor": test_user["user"]["id"],
                "expiration": isodatetime.from_now(seconds=-1),
            },
        })
        with pytest.raises(SessionExpired):
            kernel.query(expired["id"], TYPES_QUERY)

    def test_get_session_user(self, kernel, test_user):
        user = kernel.get_session_user(test_user["session"])
        assert user["slug"] == "user-jane"
        assert "hash" not in user["data"]


class TestPermissions:
    """Tests for role and marker filtering."""

    def test_guest_sees_types_but_not_users(self, kernel):
        guest = kernel.sessions["guest"]
        assert kernel.query(guest, TYPES_QUERY)
        assert kernel.get_card_by_slug(guest, "user-admin") is None

    def test_guest_cannot_write(self, kernel):
        with pytest.raises(PermissionsError):
            kernel.insert_card(kernel.sessions["guest"], contact("contact-guest"))

    def test_user_sees_own_card_only(self, kernel, test_user, other_user):
        session = test_user["session"]
        assert kernel.get_card_by_id(session, test_user["user"]["id"]) is not None
        assert kernel.get_card_by_id(session, other_user["user"]["id"]) is None

    def test_user_sees_own_sessions_only(self, kernel, test_user, other_user):
        session = test_user["session"]
        assert kernel.get_card_by_id(session, test_user["session"]) is not None
        assert kernel.get_card_by_id(session, other_user["session"]) is None

    def test_markers_restrict_visibility(self, kernel, admin_session, test_user):
        session = test_user["session"]
        kernel.insert_card(admin_session, contact("contact-mine", markers=["user-jane"]))
        kernel.insert_card(admin_session, contact("contact-shared", markers=["org-acme+user-jane"]))
        kernel.insert_card(admin_session, contact("contact-theirs", markers=["user-bob"]))

        assert kernel.get_card_by_slug(session, "contact-mine") is not None
        assert kernel.get_card_by_slug(session, "contact-shared") is not None
        assert kernel.get_card_by_slug(session, "contact-theirs") is None

    def test_org_membership_grants_marker(self, kernel, admin_session, test_user):
        from jellyfish_core.kernel import links

        session = test_user["session"]
        org = kernel.insert_card(admin_session, {"slug": "org-acme", "type": "org@1.0.0", "name": "Acme"})
        kernel.insert_card(admin_session, contact("contact-acme", markers=["org-acme"]))
        assert kernel.get_card_by_slug(session, "contact-acme") is None

        kernel.insert_card(admin_session, links.build(
            "is member of", "has member", test_user["user"], org
        ))
        assert kernel.get_card_by_slug(session, "contact-acme") is not None

    def test_user_cannot_join_hidden_org(self, kernel, admin_session, test_user):
        """Linking to a card the session cannot see fails as if it did not exist."""
        from jellyfish_core.kernel import links

        session = test_user["session"]
        org = kernel.insert_card(admin_session, {
            "slug": "org-secret", "type": "org@1.0.0", "name": "Secret", "markers": ["org-secret"],
        })
        kernel.insert_card(admin_session, contact("contact-secret", markers=["org-secret"]))

        with pytest.raises(SchemaMismatch, match="does not exist"):
            kernel.insert_card(session, links.build(
                "is member of", "has member", test_user["user"], org
            ))
        assert kernel.get_card_by_slug(session, "contact-secret") is None

    def test_user_cannot_write_links(self, kernel, admin_session, test_user):
        from jellyfish_core.kernel import links

        org = kernel.insert_card(admin_session, {"slug": "org-open", "type": "org@1.0.0", "name": "Open"})
        assert kernel.get_card_by_id(test_user["session"], org["id"]) is not None

        with pytest.raises(PermissionsError):
            kernel.insert_card(test_user["session"], links.build(
                "is member of", "has member", test_user["user"], org
            ))

    def test_user_cannot_create_users(self, kernel, test_user):
        with pytest.raises(PermissionsError):
            kernel.insert_card(test_user["session"], {
                "slug": "user-mallory",
                "type": "user@1.0.0",
                "data": {"roles": []},
            })

    def test_user_cannot_change_own_roles(self, kernel, test_user):
        session = test_user["session"]
        with pytest.raises(PermissionsError):
            kernel.patch_card(session, test_user["user"], [
                {"op": "replace", "path": "/data/roles", "value": ["user-admin"]}
            ])

    def test_user_can_edit_own_profile(self, kernel, test_user):
        session = test_user["session"]
        updated = kernel.patch_card(session, test_user["user"], [
            {"op": "add", "path": "/data/profile", "value": {"about": "Hi"}}
        ])
        assert updated["data"]["profile"] == {"about": "Hi"}
        assert service.verify_user_password(test_user["user"]["id"], test_user["password"])

    def test_user_cannot_patch_others(self, kernel, test_user, other_user):
        """A card the session cannot write is reported as not found."""
        with pytest.raises(ResourceNotFound):
            kernel.patch_card(test_user["session"], other_user["user"], [
                {"op": "replace", "path": "/name", "value": "x"}
            ])


class TestInsert:
    """Tests for insert_card."""

    def test_insert_generates_slug(self, kernel, test_user):
        card = kernel.insert_card(test_user["session"], message(test_user["user"]["id"]))
        assert card["slug"].startswith("message-")
        assert card["type"] == "message@1.0.0"
        assert card["created_at"].endswith("Z")

    def test_insert_resolves_unversioned_type(self, kernel, admin_session):
        card = kernel.insert_card(admin_session, {"slug": "org-acme", "type": "org", "name": "Acme"})
        assert card["type"] == "org@1.0.0"

    def test_insert_without_type(self, kernel, admin_session):
        with pytest.raises(SchemaMismatch, match="No type"):
            kernel.insert_card(admin_session, {"slug": "x"})

    def test_insert_unknown_type(self, kernel, admin_session):
        with pytest.raises(UnknownCardType):
            kernel.insert_card(admin_session, {"slug": "x", "type": "nope@1.0.0"})

    def test_insert_invalid_card(self, kernel, admin_session):
        """The type schema is enforced."""
        with pytest.raises(SchemaMismatch) as exc_info:
            kernel.insert_card(admin_session, {"type": "message@1.0.0", "data": {}})
        assert exc_info.value.details["errors"]

    def test_insert_invalid_base_card(self, kernel, admin_session):
        """The base card schema is enforced too."""
        with pytest.raises(SchemaMismatch):
            kernel.insert_card(admin_session, contact("Contact With Spaces"))

    def test_insert_drops_links(self, kernel, admin_session):
        """Links in the input are ignored, so a card read back can be re-inserted."""
        card = kernel.insert_card(admin_session, contact("contact-x", links={"a": []}))
        assert card["links"] == {}

        stored = kernel.get_card_by_id(admin_session, card["id"])
        assert stored["links"] == {}

    def test_insert_duplicate(self, kernel, admin_session):
        kernel.insert_card(admin_session, contact("contact-dup"))
        with pytest.raises(ElementAlreadyExists):
            kernel.insert_card(admin_session, contact("contact-dup"))

    def test_upsert_updates(self, kernel, admin_session):
        first = kernel.insert_card(admin_session, contact("contact-up"))
        second = kernel.insert_card(
            admin_session, contact("contact-up", name="Updated"), override=True
        )
        assert second["id"] == first["id"]
        assert second["name"] == "Updated"
        assert second["updated_at"] is not None

    def test_upsert_unchanged_is_noop(self, kernel, admin_session):
        first = kernel.insert_card(admin_session, contact("contact-same"))
        second = kernel.insert_card(admin_session, contact("contact-same"), override=True)
        assert second["updated_at"] == first["updated_at"]

    def test_upsert_keeps_write_only_values(self, kernel, admin_session, test_user):
        """Upserting a user without its hash keeps the stored hash."""
        kernel.insert_card(admin_session, {
            "slug": "user-jane",
            "type": "user@1.0.0",
            "name": "Jane Doe",
            "data": {"email": "jane@jellyfish.io", "roles": ["user-community"]},
        }, override=True)

        assert service.verify_user_password(test_user["user"]["id"], test_user["password"])


class TestPatch:
    """Tests for patch_card."""

    def test_patch_applies(self, kernel, admin_session):
        card = kernel.insert_card(admin_session, contact("contact-p"))
        patched = kernel.patch_card(admin_session, card, [
            {"op": "add", "path": "/data/profile/company", "value": "Acme"}
        ])
        assert patched["data"]["profile"] == {"company": "Acme"}

    def test_patch_missing_card(self, kernel, admin_session):
        with pytest.raises(ResourceNotFound):
            kernel.patch_card(admin_session, {"id": uid.generate_uuid()}, [])

    def test_patch_immutable_field(self, kernel, admin_session):
        card = kernel.insert_card(admin_session, contact("contact-imm"))
        with pytest.raises(ValidationError, match="immutable field: slug"):
            kernel.patch_card(admin_session, card, [
                {"op": "replace", "path": "/slug", "value": "contact-other"}
            ])

    def test_patch_that_cannot_apply(self, kernel, admin_session):
        card = kernel.insert_card(admin_session, contact("contact-bad"))
        with pytest.raises(ValidationError, match="Invalid patch"):
            kernel.patch_card(admin_session, card, [{"op": "remove", "path": "/data/nope"}])

    def test_patch_result_must_validate(self, kernel, admin_session):
        card = kernel.insert_card(admin_session, contact("contact-val"))
        with pytest.raises(SchemaMismatch):
            kernel.patch_card(admin_session, card, [{"op": "remove", "path": "/data/profile"}])

    def test_patch_remove_name(self, kernel, admin_session):
        """Removing a column-backed field clears it in the store as well."""
        card = kernel.insert_card(admin_session, contact("contact-named", name="Hello"))
        patched = kernel.patch_card(admin_session, card, [{"op": "remove", "path": "/name"}])

        assert "name" not in patched
        assert "name" not in kernel.get_card_by_id(admin_session, card["id"])

    def test_patch_noop(self, kernel, admin_session):
        card = kernel.insert_card(admin_session, contact("contact-noop"))
        result = kernel.patch_card(admin_session, card, [
            {"op": "test", "path": "/active", "value": True}
        ])
        assert result["updated_at"] is None


class TestHelpers:
    """Tests for the query helpers."""

    def test_prefilter(self):
        filters, data_filters = Kernel._prefilter({
            "type": "object",
            "required": ["type", "data"],
            "properties": {
                "type": {"const": "session@1.0.0"},
                "name": {"const": "not required"},
                "data": {
                    "type": "object",
                    "required": ["actor"],
                    "properties": {
                        "actor": {"const": "abc"},
                        "other": {"const": "optional"},
                    }
                }
            }
        })
        assert filters == {"type": "session@1.0.0"}
        assert data_filters == {("data", "actor"): "abc"}

    def test_prefilter_ignores_non_scalar_constants(self):
        filters, _ = Kernel._prefilter({
            "properties": {"slug": {"const": ["a"]}, "tags": {"const": "x"}}
        })
        assert filters == {}

    def test_sort_key_puts_missing_last(self):
        cards = [{"n": None}, {"n": "b"}, {"n": 2}, {}, {"n": "a"}]
        ordered = sorted(cards, key=lambda card: _sort_key(card, "n"))
        assert [card.get("n") for card in ordered] == [2, "a", "b", None, None]
