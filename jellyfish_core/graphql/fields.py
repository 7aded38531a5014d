"""Fields every card type exposes through the Card interface."""

from graphql import (
    GraphQLBoolean,
    GraphQLField,
    GraphQLID,
    GraphQLList,
    GraphQLNonNull,
    GraphQLString,
)

from .scalars import GraphQLDateTime, GraphQLJSON, GraphQLSemanticVersion


def key_resolver(key: str):
    """Resolve a field from a dict key (GraphQL names are camelCase, cards are not)."""
    def resolve(obj, _info):
        return obj.get(key) if isinstance(obj, dict) else None
    return resolve


def _field(graphql_type, key: str, description: str | None = None) -> GraphQLField:
    return GraphQLField(graphql_type, resolve=key_resolver(key), description=description)


def card_fields() -> dict[str, GraphQLField]:
    """A fresh set of the base card fields (data excluded)."""
    strings = GraphQLNonNull(GraphQLList(GraphQLNonNull(GraphQLString)))
    return {
        "id": _field(GraphQLNonNull(GraphQLID), "id"),
        "slug": _field(GraphQLNonNull(GraphQLString), "slug"),
        "type": _field(GraphQLNonNull(GraphQLString), "type", "Versioned reference to the type card"),
        "version": _field(GraphQLNonNull(GraphQLSemanticVersion), "version"),
        "name": _field(GraphQLString, "name"),
        "active": _field(GraphQLNonNull(GraphQLBoolean), "active"),
        "markers": _field(strings, "markers"),
        "tags": _field(strings, "tags"),
        "links": _field(GraphQLJSON, "links"),
        "requires": _field(GraphQLJSON, "requires"),
        "capabilities": _field(GraphQLJSON, "capabilities"),
        "linkedAt": _field(GraphQLJSON, "linked_at"),
        "createdAt": _field(GraphQLDateTime, "created_at"),
        "updatedAt": _field(GraphQLDateTime, "updated_at"),
    }
