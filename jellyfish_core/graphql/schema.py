"""GraphQL schema generation.

One object type is generated per type card by the card visitor. All of them
implement the Card interface; cards whose type has no generated object type
resolve to GenericCard, whose data field is plain JSON.

The schema is rebuilt whenever the set of type cards changes.
"""

import logging

from graphql import (
    GraphQLArgument,
    GraphQLField,
    GraphQLID,
    GraphQLInt,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
)

from ..kernel import Kernel
from ..schema.types import CardReference
from . import resolvers
from .context import SchemaGeneratorContext
from .fields import card_fields, key_resolver
from .handlers import HANDLERS, TYPE_TYPE
from .scalars import GraphQLJSON, SCALARS
from .visitor import CardVisitor

logger = logging.getLogger(__name__)

GENERIC_CARD = "GenericCard"

RESERVED_NAMES = {
    "Card", GENERIC_CARD, "Query",
    "String", "Int", "Float", "Boolean", "ID",
    *(scalar.name for scalar in SCALARS),
}


def build_schema(type_cards: list[dict]) -> GraphQLSchema:
    """Build a schema with one object type per type card."""
    type_names: dict[str, str] = {}

    def resolve_card_type(card, _info, _abstract_type):
        return type_names.get(card.get("type"), GENERIC_CARD)

    card_interface = GraphQLInterfaceType(
        "Card",
        fields=card_fields,
        resolve_type=resolve_card_type,
        description="Fields shared by every card",
    )

    context = SchemaGeneratorContext(reserved=RESERVED_NAMES, interfaces=[card_interface])
    for type_card in sorted(type_cards, key=lambda card: (card["slug"], card["version"])):
        generated = CardVisitor(type_card, HANDLERS, context).visit()
        if generated is None:
            continue
        type_names[CardReference.of(type_card)] = generated.name
        logger.debug("Generated GraphQL type %s for %s", generated.name, type_card["slug"])

    generic_card = GraphQLObjectType(
        GENERIC_CARD,
        fields={**card_fields(), "data": GraphQLField(GraphQLJSON, resolve=key_resolver("data"))},
        interfaces=[card_interface],
        description="A card whose type has no generated GraphQL type",
    )

    query = GraphQLObjectType("Query", fields={
        "card": GraphQLField(
            card_interface,
            args={"id": GraphQLArgument(GraphQLNonNull(GraphQLID))},
            resolve=resolvers.resolve_card,
        ),
        "cardBySlug": GraphQLField(
            card_interface,
            args={"slug": GraphQLArgument(GraphQLNonNull(GraphQLString))},
            resolve=resolvers.resolve_card_by_slug,
        ),
        "cards": GraphQLField(
            GraphQLNonNull(GraphQLList(GraphQLNonNull(card_interface))),
            args={
                "query": GraphQLArgument(
                    GraphQLNonNull(GraphQLJSON),
                    description="A JSON Schema, or the id or slug of a view",
                ),
                "limit": GraphQLArgument(GraphQLInt),
                "skip": GraphQLArgument(GraphQLInt, default_value=0),
            },
            resolve=resolvers.resolve_cards,
        ),
        "whoami": GraphQLField(card_interface, resolve=resolvers.resolve_whoami),
    })

    return GraphQLSchema(
        query=query,
        types=[generic_card, *context.types.values(), *SCALARS],
    )


_cache: dict[str, object] = {"key": None, "schema": None}


def get_schema(kernel: Kernel) -> GraphQLSchema:
    """The schema for the current type cards, rebuilt when they change."""
    type_cards = kernel.query(kernel.sessions["admin"], {
        "type": "object",
        "required": ["type", "active"],
        "properties": {
            "type": {"const": TYPE_TYPE},
            "active": {"const": True},
        },
    })

    key = tuple(sorted(
        (card["id"], card["version"], card["updated_at"] or "") for card in type_cards
    ))
    if _cache["key"] != key:
        _cache["schema"] = build_schema(type_cards)
        _cache["key"] = key
        logger.info("Built GraphQL schema for %d type cards", len(type_cards))

    return _cache["schema"]
