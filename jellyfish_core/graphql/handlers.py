"""Schema handlers for the card visitor.

Each handler looks at one chunk of a type card (the card itself at depth 0,
JSON Schema fragments below it) and says whether it can turn it into a
GraphQL type, how confident it is (weight), which sub-chunks it needs typed
first (children) and how to combine their types (process).
"""

from typing import Any

from graphql import (
    GraphQLBoolean,
    GraphQLField,
    GraphQLFloat,
    GraphQLInt,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLString,
)

from .context import SchemaGeneratorContext, camel_case, pascal_case
from .fields import card_fields, key_resolver
from .scalars import (
    GraphQLDateTime,
    GraphQLEmail,
    GraphQLJSON,
    GraphQLMarkdown,
    GraphQLSemanticVersion,
)

TYPE_TYPE = "type@1.0.0"


def schema_types(chunk: Any) -> set[str]:
    """The JSON types a schema chunk allows, ignoring "null"."""
    if not isinstance(chunk, dict):
        return set()
    declared = chunk.get("type")
    if isinstance(declared, str):
        declared = [declared]
    return {t for t in declared or [] if t != "null"}


class BaseHandler:
    """A handler that handles nothing. Subclasses override what they need."""

    def __init__(self, chunk: Any, depth: int, context: SchemaGeneratorContext):
        self.chunk = chunk
        self.depth = depth
        self.context = context

    def can_handle(self) -> bool:
        return False

    def weight(self) -> int:
        return 0

    def generate_type_name(self) -> str | None:
        return None

    def children(self) -> list[Any]:
        return []

    def name_for_child(self, index: int) -> str | None:
        return None

    def process(self, child_results: list[Any]) -> Any:
        raise NotImplementedError


class TypeCardHandler(BaseHandler):
    """The root: a type card becomes an object type implementing Card."""

    def can_handle(self):
        return (
            self.depth == 0
            and isinstance(self.chunk, dict)
            and self.chunk.get("type") == TYPE_TYPE
            and isinstance(self.chunk.get("data", {}).get("schema"), dict)
        )

    def weight(self):
        return 100

    def generate_type_name(self):
        return self.context.unique_name(pascal_case(self.chunk["slug"]))

    def _data_schema(self) -> Any:
        properties = self.chunk["data"]["schema"].get("properties") or {}
        return properties.get("data")

    def children(self):
        data_schema = self._data_schema()
        return [data_schema] if data_schema is not None else []

    def name_for_child(self, index):
        return "Data"

    def process(self, child_results):
        fields = card_fields()
        data_type = child_results[0] if child_results and child_results[0] else GraphQLJSON
        fields["data"] = GraphQLField(data_type, resolve=key_resolver("data"))

        return self.context.register(GraphQLObjectType(
            self.context.type_name(),
            fields=fields,
            interfaces=self.context.interfaces,
            description=self.chunk.get("name"),
        ))


class ObjectHandler(BaseHandler):
    """Objects with declared properties become object types."""

    def can_handle(self):
        return schema_types(self.chunk) == {"object"} and bool(self.chunk.get("properties"))

    def weight(self):
        return 10

    def _keys(self) -> list[str]:
        # writeOnly properties never leave the kernel
        return [
            key for key, schema in self.chunk["properties"].items()
            if not (isinstance(schema, dict) and schema.get("writeOnly"))
        ]

    def children(self):
        return [self.chunk["properties"][key] for key in self._keys()]

    def name_for_child(self, index):
        return pascal_case(self._keys()[index])

    def process(self, child_results):
        fields = {}
        for key, result in zip(self._keys(), child_results):
            if result is None:
                continue
            schema = self.chunk["properties"][key]
            fields[camel_case(key)] = GraphQLField(
                result,
                resolve=key_resolver(key),
                description=schema.get("title") if isinstance(schema, dict) else None,
            )

        if not fields:
            return GraphQLJSON

        name = self.context.unique_name(self.context.type_name())
        return self.context.register(GraphQLObjectType(name, fields=fields))


class ArrayHandler(BaseHandler):
    """Arrays of a single item schema become lists of non-null items."""

    def can_handle(self):
        return schema_types(self.chunk) == {"array"} and isinstance(self.chunk.get("items"), dict)

    def weight(self):
        return 10

    def children(self):
        return [self.chunk["items"]]

    def name_for_child(self, index):
        return "Item"

    def process(self, child_results):
        item_type = child_results[0] or GraphQLJSON
        return GraphQLList(GraphQLNonNull(item_type))


class ScalarHandler(BaseHandler):
    """Maps a JSON type (and optionally a format) onto a GraphQL scalar."""

    json_type: str = ""
    format: str | None = None
    scalar = None

    def can_handle(self):
        if schema_types(self.chunk) != {self.json_type}:
            return False
        return self.format is None or self.chunk.get("format") == self.format

    def weight(self):
        # A format match is more specific than the bare JSON type
        return 2 if self.format else 1

    def process(self, child_results):
        return self.scalar


class StringHandler(ScalarHandler):
    json_type = "string"
    scalar = GraphQLString


class EmailHandler(ScalarHandler):
    json_type = "string"
    format = "email"
    scalar = GraphQLEmail


class MarkdownHandler(ScalarHandler):
    json_type = "string"
    format = "markdown"
    scalar = GraphQLMarkdown


class SemanticVersionHandler(ScalarHandler):
    json_type = "string"
    format = "semver"
    scalar = GraphQLSemanticVersion


class DateTimeHandler(ScalarHandler):
    json_type = "string"
    format = "date-time"
    scalar = GraphQLDateTime


class IntegerHandler(ScalarHandler):
    json_type = "integer"
    scalar = GraphQLInt


class NumberHandler(ScalarHandler):
    json_type = "number"
    scalar = GraphQLFloat


class BooleanHandler(ScalarHandler):
    json_type = "boolean"
    scalar = GraphQLBoolean


class JSONHandler(BaseHandler):
    """Fallback for any other schema below the root."""

    def can_handle(self):
        return self.depth > 0 and isinstance(self.chunk, (dict, bool))

    def weight(self):
        return -1

    def process(self, child_results):
        return GraphQLJSON


HANDLERS = (
    TypeCardHandler,
    ObjectHandler,
    ArrayHandler,
    StringHandler,
    EmailHandler,
    MarkdownHandler,
    SemanticVersionHandler,
    DateTimeHandler,
    IntegerHandler,
    NumberHandler,
    BooleanHandler,
    JSONHandler,
)
