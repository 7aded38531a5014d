"""The card kernel: permissioned reads and validated writes over the card store.

Every public method takes a session id. Reads return only the cards the
session's permission filter accepts, with writeOnly properties removed.
Writes validate the card against the base card schema and its type schema,
then check the session's write-mode filter before touching the database.
"""

import copy
import logging
from typing import Any

import jsonpatch
from jsonschema import Draft7Validator

from ..db import get_core
from ..db.card import SCALAR_COLUMNS, CardOperations
from ..exceptions import (
    PermissionsError,
    ResourceNotFound,
    SchemaMismatch,
    UnknownCardType,
    ValidationError,
)
from ..schema.types import CardReference
from ..utils import semver, uid
from . import json_schema, links, permission_filter

logger = logging.getLogger(__name__)

BASE_CARD_SLUG = "card"
TYPE_TYPE = "type@1.0.0"
SESSION_TYPE = "session@1.0.0"

# Fields that must never change once a card exists
IMMUTABLE_FIELDS = ("id", "type", "slug", "created_at")

# Fields ignored when deciding whether an upsert changes anything
VOLATILE_FIELDS = ("id", "created_at", "updated_at", "linked_at", "links")


class Kernel:
    """Card storage, query execution and permission enforcement."""

    def __init__(self):
        self.sessions: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Upsert the core cards plus the admin and guest users and sessions.

        The first cards are written without a session, since the permission
        filter needs the type, user and role cards to exist before it can
        evaluate anything.
        """
        from ..default_cards import CORE_BOOTSTRAP, CORE_CARDS, load

        bootstrap = [self.defaults(load("core", name)) for name in CORE_BOOTSTRAP]
        type_schemas = {
            CardReference.of(card): card["data"]["schema"]
            for card in bootstrap
            if card["type"] == TYPE_TYPE
        }
        base_schema = type_schemas[CardReference.build(BASE_CARD_SLUG, "1.0.0")]

        for card in bootstrap:
            json_schema.validate(base_schema, card)
            json_schema.validate(type_schemas[card["type"]], card)
            self._unsafe_upsert(card, type_schemas[card["type"]])

        admin = self._unsafe_get_by_slug("user-admin")
        admin_session = self._unsafe_upsert(self.defaults({
            "slug": "session-admin-kernel",
            "type": SESSION_TYPE,
            "data": {"actor": admin["id"]},
        }))
        self.sessions["admin"] = admin_session["id"]

        for name in CORE_CARDS:
            self.insert_card(self.sessions["admin"], load("core", name), override=True)

        guest = self._unsafe_get_by_slug("user-guest")
        guest_session = self.insert_card(self.sessions["admin"], {
            "slug": "session-guest",
            "type": SESSION_TYPE,
            "data": {"actor": guest["id"]},
        }, override=True)
        self.sessions["guest"] = guest_session["id"]

        logger.info("Kernel initialized with %d core cards",
                    len(CORE_BOOTSTRAP) + len(CORE_CARDS))

    def _unsafe_upsert(self, card: dict, type_schema: dict | None = None) -> dict:
        with get_core(atomic=True) as core:
            existing = core.card.get_by_slug(card["slug"], card["version"])
            if existing:
                json_schema.restore_write_only(type_schema, existing[0], card)
            if existing and self._unchanged(existing[0], card):
                return existing[0]
            if existing:
                card = {**card, "links": existing[0]["links"]}
            return core.card.upsert(card)

    def _unsafe_get_by_slug(self, slug: str) -> dict:
        core = get_core()
        return semver.latest(core.card.get_by_slug(slug))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def defaults(card: dict) -> dict:
        """Fill in the optional card fields."""
        card = copy.deepcopy(card)
        card.setdefault("version", "1.0.0")
        card.setdefault("active", True)
        card.setdefault("markers", [])
        card.setdefault("tags", [])
        card.setdefault("links", {})
        card.setdefault("requires", [])
        card.setdefault("capabilities", [])
        card.setdefault("data", {})
        card.setdefault("linked_at", {})
        if "name" in card and not isinstance(card["name"], str):
            del card["name"]
        return card

    def get_session_user(self, session: str) -> dict:
        """Get the actor of a session, without writeOnly properties.

        Raises:
            AuthenticationError: If the session is invalid
            SessionExpired: If the session has expired
        """
        core = get_core()
        backend = core.card
        user = permission_filter.get_session_user(backend, session)
        return self._mask(backend, user, {})

    def get_card_by_id(
        self,
        session: str,
        card_id: str,
        type: str | None = None,
        write_mode: bool = False
    ) -> dict | None:
        """Get a visible card by id, or None."""
        schema = {
            "type": "object",
            "required": ["id"],
            "properties": {"id": {"type": "string", "const": card_id}},
        }
        if type:
            schema["required"].append("type")
            schema["properties"]["type"] = {"type": "string", "const": type}

        results = self.query(session, schema, limit=1, write_mode=write_mode)
        return results[0] if results else None

    def get_card_by_slug(
        self,
        session: str,
        slug: str,
        write_mode: bool = False
    ) -> dict | None:
        """Get a visible card by "slug", "slug@x.y.z" or "slug@latest".

        Without an exact version the highest visible version is returned.

        Raises:
            ValidationError: If the version is not a semantic version
        """
        try:
            reference = semver.parse_reference(slug)
        except ValueError as e:
            raise ValidationError(f"Invalid card reference: {slug}", {"slug": slug}) from e
        schema = {
            "type": "object",
            "required": ["slug"],
            "properties": {"slug": {"type": "string", "const": reference.slug}},
        }
        if reference.version:
            schema["required"].append("version")
            schema["properties"]["version"] = {"type": "string", "const": reference.version}

        return semver.latest(self.query(session, schema, write_mode=write_mode))

    def query(
        self,
        session: str,
        schema: dict | None,
        limit: int | None = None,
        skip: int = 0,
        sort_by: str | list[str] | None = None,
        sort_dir: str = "asc",
        write_mode: bool = False
    ) -> list[dict]:
        """Get every visible card matching a JSON Schema (or a view card).

        A top-level "$$links" object maps verbs to schemas: matching cards
        must have at least one linked card per verb that matches, and those
        linked cards are attached under card["links"][verb].

        Raises:
            AuthenticationError: If the session is invalid
            PermissionsError: If the actor has no role
        """
        schema = copy.deepcopy(schema) if schema else {}
        if semver.base_slug(schema.get("type", "")) == "view" and "data" in schema:
            schema = permission_filter.get_view_schema(schema) or {}

        links_query = schema.pop("$$links", None) or {}

        core = get_core()
        backend = core.card
        final_schema = permission_filter.get_query(backend, session, schema, write_mode)
        filters, data_filters = self._prefilter(schema)

        matcher = json_schema.compile_schema(final_schema)
        type_schemas: dict[str, Any] = {}
        link_filter = None
        results = []

        for card in backend.find(filters, data_filters):
            card = self._mask(backend, card, type_schemas)
            if not matcher.is_valid(card):
                continue

            if links_query:
                if link_filter is None:
                    link_filter = json_schema.compile_schema(
                        permission_filter.get_query(backend, session, None, write_mode)
                    )
                    links_query = {
                        verb: json_schema.compile_schema(link_schema) if link_schema else None
                        for verb, link_schema in links_query.items()
                    }
                attached = self._evaluate_links(
                    backend, card, links_query, link_filter, type_schemas
                )
                if attached is None:
                    continue
                card["links"] = attached

            results.append(card)

        results.sort(
            key=lambda card: _sort_key(card, sort_by or "created_at"),
            reverse=sort_dir == "desc"
        )

        results = results[skip:]
        if limit is not None:
            results = results[:limit]
        return results

    def _evaluate_links(
        self,
        backend: CardOperations,
        card: dict,
        links_query: dict,
        link_filter: Draft7Validator,
        type_schemas: dict
    ) -> dict | None:
        attached = {}
        for verb, link_matcher in links_query.items():
            matches = []
            for linked in backend.linked(card["id"], verb):
                linked = self._mask(backend, linked, type_schemas)
                if not link_filter.is_valid(linked):
                    continue
                if link_matcher and not link_matcher.is_valid(linked):
                    continue
                matches.append(linked)
            if not matches:
                return None
            attached[verb] = matches
        return attached

    @staticmethod
    def _prefilter(schema: dict) -> tuple[dict, dict]:
        """Turn top-level const constraints into SQL equality filters."""
        filters = {}
        data_filters = {}
        properties = schema.get("properties") or {}
        required = set(schema.get("required") or [])

        for column, subschema in properties.items():
            if column not in SCALAR_COLUMNS or not isinstance(subschema, dict):
                continue
            value = subschema.get("const")
            if isinstance(value, (str, int, bool)) and (column != "name" or column in required):
                filters[column] = value

        data_schema = properties.get("data")
        if isinstance(data_schema, dict) and "data" in required:
            data_required = set(data_schema.get("required") or [])
            for key, subschema in (data_schema.get("properties") or {}).items():
                if key not in data_required or not isinstance(subschema, dict):
                    continue
                value = subschema.get("const")
                if isinstance(value, str):
                    data_filters[("data", key)] = value

        return filters, data_filters

    def _type_schema(self, backend: CardOperations, reference: str, cache: dict) -> dict | None:
        if reference not in cache:
            slug, version = semver.parse_reference(reference)
            type_card = semver.latest([
                card for card in backend.get_by_slug(slug, version)
                if card["type"] == TYPE_TYPE
            ])
            cache[reference] = type_card["data"].get("schema") if type_card else None
        return cache[reference]

    def _mask(self, backend: CardOperations, card: dict, cache: dict) -> dict:
        """Remove the properties the card's type marks writeOnly."""
        return json_schema.strip_write_only(
            self._type_schema(backend, card["type"], cache), card
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _resolve_type(self, session: str, card: dict) -> dict:
        if not card.get("type"):
            raise SchemaMismatch("No type in card", {"slug": card.get("slug")})

        type_card = self.get_card_by_slug(session, card["type"])
        if not type_card or type_card["type"] != TYPE_TYPE \
                or not type_card["data"].get("schema"):
            raise UnknownCardType(
                f"Unknown type: '{card['type']}'",
                {"type": card["type"]}
            )
        return type_card

    def _validate(self, backend: CardOperations, type_card: dict, card: dict) -> None:
        base = self._type_schema(backend, CardReference.build(BASE_CARD_SLUG, "1.0.0"), {})
        if base:
            json_schema.validate(base, card, f"Invalid card: {card.get('slug')}")
        json_schema.validate(
            type_card["data"]["schema"],
            card,
            f"Card does not match the schema of {card['type']}"
        )

    def _check_write_permission(self, backend: CardOperations, session: str, card: dict) -> None:
        write_filter = permission_filter.get_query(backend, session, None, write_mode=True)
        if not json_schema.is_valid(write_filter, card):
            raise PermissionsError(
                f"You may not write card: {card.get('slug')}",
                {"slug": card.get("slug"), "type": card.get("type")}
            )

    def _check_link_ends(self, session: str, card: dict) -> None:
        """Both ends of a link must be visible to the session creating it."""
        data = card.get("data") or {}
        for end in ("from", "to"):
            reference = data.get(end) or {}
            if not reference.get("id") or \
                    self.get_card_by_id(session, reference["id"]) is None:
                raise SchemaMismatch(
                    f"Link {end} card does not exist: {reference.get('id')}",
                    {"link": card.get("name"), end: reference}
                )

    @staticmethod
    def _unchanged(existing: dict, card: dict) -> bool:
        def comparable(value):
            return {k: v for k, v in value.items() if k not in VOLATILE_FIELDS}
        return comparable(existing) == comparable(card)

    def insert_card(self, session: str, card: dict, override: bool = False) -> dict:
        """Insert a card, or with override=True upsert it.

        Any links in the input are dropped; an upsert keeps the stored ones.

        Raises:
            SchemaMismatch: If the card has no type or fails validation
            UnknownCardType: If the type card does not exist
            PermissionsError: If the session may not write the card
            ElementAlreadyExists: If the slug and version are taken
        """
        card = self.defaults(card)
        # links are computed by queries, never stored from input
        card["links"] = {}
        type_card = self._resolve_type(session, card)
        card["type"] = CardReference.of(type_card)
        card.setdefault("slug", f"{type_card['slug']}-{uid.generate_uuid()}")
        if links.is_link(card):
            self._check_link_ends(session, card)

        with get_core(atomic=True) as core:
            backend = core.card
            type_schema = type_card["data"]["schema"]

            existing = None
            if override:
                matches = backend.get_by_slug(card["slug"], card["version"])
                if card.get("id"):
                    by_id = backend.get_by_id(card["id"])
                    matches = [by_id] if by_id else matches
                existing = matches[0] if matches else None

            if existing is not None:
                json_schema.restore_write_only(type_schema, existing, card)
                card["links"] = existing["links"]
                card["linked_at"] = existing["linked_at"]

            self._validate(backend, type_card, card)
            if links.is_link(card):
                links.validate_link(backend, card)

            if existing is not None:
                if self._unchanged(existing, card):
                    logger.debug("Upsert of %s is a no-op", card["slug"])
                    return self._mask(backend, existing, {})
                self._check_write_permission(
                    backend, session, self._mask(backend, existing, {})
                )
                self._check_write_permission(backend, session, self._mask(backend, card, {}))
                card["id"] = existing["id"]
                result = backend.update(existing["id"], card)
                logger.info("Updated card %s (%s)", result["slug"], result["id"])
            else:
                self._check_write_permission(backend, session, self._mask(backend, card, {}))
                card.pop("links", None)
                card["links"] = {}
                result = backend.insert(card)
                logger.info("Inserted card %s (%s)", result["slug"], result["id"])

                if links.is_link(result):
                    links.stamp(backend, result)

            return self._mask(backend, result, {})

    def patch_card(self, session: str, card: dict, patch: list[dict]) -> dict:
        """Apply an RFC 6902 JSON Patch to a card the session may write.

        Raises:
            ResourceNotFound: If the card is not visible in write mode
            ValidationError: If the patch cannot be applied or touches an
                immutable field
            SchemaMismatch: If the patched card fails validation
        """
        current = self.get_card_by_id(session, card["id"], write_mode=True)
        if current is None:
            raise ResourceNotFound(
                f"Card not found or not writable: {card['id']}",
                {"id": card["id"]}
            )

        try:
            patched = jsonpatch.apply_patch(current, patch)
        except (jsonpatch.JsonPatchException, jsonpatch.JsonPointerException) as e:
            raise ValidationError(f"Invalid patch: {e}", {"patch": patch}) from e

        for field in IMMUTABLE_FIELDS:
            if patched.get(field) != current.get(field):
                raise ValidationError(
                    f"Cannot change immutable field: {field}",
                    {"field": field}
                )

        if "name" in patched and not isinstance(patched["name"], str):
            del patched["name"]

        type_card = self._resolve_type(session, patched)

        with get_core(atomic=True) as core:
            backend = core.card
            raw = backend.get_by_id(current["id"])
            json_schema.restore_write_only(type_card["data"]["schema"], raw, patched)
            patched["links"] = raw["links"]
            patched["linked_at"] = raw["linked_at"]

            self._validate(backend, type_card, patched)
            if self._unchanged(raw, patched):
                return current

            self._check_write_permission(backend, session, self._mask(backend, patched, {}))
            result = backend.update(current["id"], patched)
            logger.info("Patched card %s (%s)", result["slug"], result["id"])
            return self._mask(backend, result, {})


def _sort_key(card: dict, sort_by: str | list[str]) -> tuple:
    path = sort_by.split(".") if isinstance(sort_by, str) else list(sort_by)
    value: Any = card
    for key in path:
        value = value.get(key) if isinstance(value, dict) else None
    # Missing values sort last, numbers before text
    if isinstance(value, (int, float)):
        return (False, 0, value, "")
    return (value is None, 1, 0, "" if value is None else str(value))
