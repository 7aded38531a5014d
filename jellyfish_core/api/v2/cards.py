"""Card read endpoints.

- GET  /api/v2/config       - Server version and schema version
- GET  /api/v2/whoami       - The session's user card
- GET  /api/v2/id/{id}      - Card by id
- GET  /api/v2/slug/{slug}  - Card by slug ("slug", "slug@1.0.0", "slug@latest")
- GET  /api/v2/type/{type}  - Every card of a type
- POST /api/v2/query        - Cards matching a schema or view

Every response uses the envelope {"error": false, "data": ...}.
"""

import json
import logging

from flask import Blueprint, g, request
from pydantic import ValidationError as PydanticValidationError

from ... import __version__
from ...db import get_schema_version
from ...exceptions import ResourceNotFound, ValidationError
from ...schema.types import CardReference
from .. import get_kernel, respond
from .query import query_api
from .schemas import QueryRequest

logger = logging.getLogger(__name__)


cards_bp = Blueprint("cards", __name__)


@cards_bp.get("/config")
def get_config():
    return respond({
        "version": __version__,
        "schema": get_schema_version(),
    })


@cards_bp.get("/whoami")
def whoami():
    return respond(g.actor)


@cards_bp.get("/id/<card_id>")
def get_by_id(card_id: str):
    """
    Get a card by id.

    Returns:
        200: The card
        404: No visible card with that id
    """
    card = get_kernel().get_card_by_id(g.session, card_id)
    if card is None:
        raise ResourceNotFound(f"Card not found: {card_id}", {"id": card_id})
    return respond(card)


@cards_bp.get("/slug/<slug>")
def get_by_slug(slug: str):
    card = get_kernel().get_card_by_slug(g.session, slug)
    if card is None:
        raise ResourceNotFound(f"Card not found: {slug}", {"slug": slug})
    return respond(card)


@cards_bp.get("/type/<card_type>")
def get_by_type(card_type: str):
    """
    Get every card of a type.

    A type without a version ("message") resolves to its latest type card.

    Returns:
        200: List of cards (possibly empty)
        404: The type card is not visible
    """
    kernel = get_kernel()
    type_card = kernel.get_card_by_slug(g.session, card_type)
    if type_card is None or type_card["type"] != "type@1.0.0":
        raise ResourceNotFound(f"Type not found: {card_type}", {"type": card_type})

    return respond(kernel.query(g.session, {
        "type": "object",
        "required": ["type"],
        "properties": {
            "type": {"const": CardReference.of(type_card)}
        }
    }))


@cards_bp.post("/query")
def query():
    """
    Query cards.

    The body is either a JSON Schema, or {"query": <schema | view id | view slug>,
    "options": {"limit", "skip", "sortBy", "sortDir"}}.

    Returns:
        200: List of matching cards
        400: Missing or malformed query
    """
    body = request.get_json(silent=True)
    if not body:
        raise ValidationError("No query schema")
    if not isinstance(body, dict):
        raise ValidationError("The query must be an object")

    if "query" in body:
        try:
            parsed = QueryRequest.model_validate(body)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid query request",
                {"errors": json.loads(e.json(include_url=False))}
            ) from e
        schema, options = parsed.query, parsed.options
    else:
        schema, options = body, None

    results = query_api(get_kernel(), g.session, schema, options, request.remote_addr)
    return respond(results)
