"""Session-aware permission filtering.

A session resolves to an actor (a user card). The actor's roles are
[user.slug, *user.data.roles]; each role "x" is described by a role card with
slug "role-x" whose data.read schema selects the cards the role may read and
whose optional data.write schema further restricts what it may modify.

get_query() folds the role schemas, the caller's own schema and the marker
restrictions into one JSON Schema that every returned card must match.
"""

import copy
import logging
import re
from typing import Any

import jsone

from ..db.card import CardOperations
from ..exceptions import AuthenticationError, PermissionsError, SessionExpired
from ..utils import isodatetime, semver
from . import json_schema

logger = logging.getLogger(__name__)

ADMIN_SLUG = "user-admin"
MEMBERSHIP_VERB = "is member of"


def get_session_user(backend: CardOperations, session: str) -> dict:
    """Get the user card behind a session id.

    Raises:
        AuthenticationError: If the session or its actor does not exist
        SessionExpired: If the session expiration has passed
    """
    session_card = backend.get_by_id(session) if session else None
    if not session_card or semver.base_slug(session_card["type"]) != "session" \
            or not session_card["active"]:
        raise AuthenticationError(f"Invalid session: {session}", {"session": session})

    expiration = session_card["data"].get("expiration")
    if expiration and isodatetime.is_past(expiration):
        raise SessionExpired(
            f"Session expired at: {expiration}",
            {"session": session, "expiration": expiration}
        )

    actor = backend.get_by_id(session_card["data"].get("actor"))
    if not actor or semver.base_slug(actor["type"]) != "user":
        raise AuthenticationError(
            f"Invalid actor: {session_card['data'].get('actor')}",
            {"session": session}
        )

    return actor


def get_view_schema(card: dict | None) -> dict | None:
    """Get the schema of a view card.

    All data.allOf schemas must match, and at least one of data.anyOf.
    """
    if not card:
        return None

    data = card.get("data") or {}
    conjunctions = [entry["schema"] for entry in data.get("allOf") or []]
    disjunctions = [entry["schema"] for entry in data.get("anyOf") or []]

    if not conjunctions and not disjunctions:
        return None

    if disjunctions:
        conjunctions.append({"anyOf": disjunctions})

    return json_schema.merge(conjunctions)


def get_roles(user: dict) -> list[str]:
    roles = [user["slug"]]
    for role in user["data"].get("roles") or []:
        if role not in roles:
            roles.append(role)
    return roles


def get_role_schemas(backend: CardOperations, user: dict, write_mode: bool = False) -> list[Any]:
    """Get one permission schema per role card the user holds."""
    schemas = []
    for role in get_roles(user):
        matches = [
            card for card in backend.get_by_slug(f"role-{role}")
            if semver.base_slug(card["type"]) == "role" and card["active"]
        ]
        role_card = semver.latest(matches)
        if role_card is None:
            continue

        read = role_card["data"].get("read")
        if read is None:
            continue

        write = role_card["data"].get("write")
        if write_mode and write is not None:
            # Write mode is evaluated with AND, so it only ever narrows read
            schemas.append({"allOf": [read, write]})
        else:
            schemas.append(read)

    return schemas


def get_user_markers(backend: CardOperations, user: dict) -> list[str]:
    """The user's own slug plus the slugs of the orgs it is a member of."""
    markers = [user["slug"]]
    for org in backend.linked(user["id"], MEMBERSHIP_VERB):
        if org["slug"] not in markers:
            markers.append(org["slug"])
    return markers


def create_markers_query(markers: list[str]) -> dict:
    """Schema valid if every marker on a card is one of the given markers.

    Compound markers ("org-a+user-b") match if any of their parts does.
    """
    if not markers:
        return {
            "type": "object",
            "properties": {
                "markers": {"type": "array", "maxItems": 0}
            }
        }

    alternatives = "|".join(re.escape(marker) for marker in markers)
    return {
        "type": "object",
        "properties": {
            "markers": {
                "type": "array",
                "items": {
                    "type": "string",
                    "anyOf": [
                        {"pattern": f"(^|\\+)({alternatives})($|\\+)"},
                        {"enum": list(dict.fromkeys(markers))}
                    ]
                }
            }
        }
    }


def eval_schema(value: Any, context: dict) -> Any:
    """Render {"$eval": "<expression>"} objects inside a schema with json-e."""
    if isinstance(value, dict):
        if "$eval" in value:
            return jsone.render({"$eval": value["$eval"]}, context)
        return {
            key: eval_schema(item, context)
            for key, item in value.items()
            if key != "$id"
        }
    if isinstance(value, list):
        return [eval_schema(item, context) for item in value]
    return value


def get_query(
    backend: CardOperations,
    session: str,
    schema: dict | None,
    write_mode: bool = False
) -> dict:
    """Compile the final query schema for a session.

    Raises:
        AuthenticationError: If the session is invalid
        PermissionsError: If the actor holds no role card
    """
    user = get_session_user(backend, session)
    context = {"user": user}

    role_schemas = get_role_schemas(backend, user, write_mode=write_mode)
    if not role_schemas:
        raise PermissionsError(
            "User must have at least 1 role",
            {"user": user["slug"]}
        )

    conjunctions = [{"anyOf": [eval_schema(copy.deepcopy(s), context) for s in role_schemas]}]

    if schema:
        conjunctions.append(eval_schema(copy.deepcopy(schema), context))

    # The admin can see every card regardless of markers
    if user["slug"] != ADMIN_SLUG:
        conjunctions.append(create_markers_query(get_user_markers(backend, user)))

    return {"type": "object", "allOf": conjunctions}
