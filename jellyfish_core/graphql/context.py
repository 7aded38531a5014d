"""State shared by the handlers while a type is generated."""

import logging
import re

from graphql import GraphQLNamedType

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[A-Za-z0-9]+")


def pascal_case(value: str) -> str:
    """Convert e.g. "action-request" to "ActionRequest"."""
    words = _WORD.findall(value)
    name = "".join(word[:1].upper() + word[1:] for word in words)
    if not name or name[0].isdigit():
        name = f"_{name}"
    return name


def camel_case(value: str) -> str:
    """Convert e.g. "type_pairs" to "typePairs"."""
    name = pascal_case(value)
    if name.startswith("_"):
        return name
    return name[:1].lower() + name[1:]


class SchemaGeneratorContext:
    """Name stack and type registry for one schema generation run."""

    def __init__(self, reserved: set[str] | None = None, interfaces: list | None = None):
        self.names: list[str] = []
        self.interfaces = list(interfaces or [])
        self.types: dict[str, GraphQLNamedType] = {}
        self.reserved = set(reserved or ())
        self.logger = logger

    def push_name(self, name: str) -> None:
        self.names.append(name)

    def pop_name(self) -> str:
        return self.names.pop()

    def type_name(self) -> str:
        """Name for the type being generated, from the names on the stack."""
        return "".join(self.names)

    def unique_name(self, name: str) -> str:
        """A type name that clashes with neither reserved nor registered names."""
        candidate = name
        suffix = 1
        while candidate in self.reserved or candidate in self.types:
            candidate = f"{name}Type" if suffix == 1 else f"{name}Type{suffix}"
            suffix += 1
        return candidate

    def register(self, graphql_type: GraphQLNamedType) -> GraphQLNamedType:
        self.types[graphql_type.name] = graphql_type
        return graphql_type
