"""Custom GraphQL scalars.

- Email: RFC-valid email addresses, checked with pydantic's EmailStr
- JSON: any JSON value
- SemanticVersion: "MAJOR.MINOR.PATCH" with optional pre-release and build
- Markdown: Markdown source text
- DateTime: ISO 8601 timestamps
"""

from typing import Any

from graphql import GraphQLError, GraphQLScalarType, StringValueNode, ValueNode
from graphql.language import print_ast
from graphql.utilities import value_from_ast_untyped
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..utils import isodatetime, semver

_email_adapter = TypeAdapter(EmailStr)


def _string_literal(name: str, node: ValueNode) -> str:
    if not isinstance(node, StringValueNode):
        raise GraphQLError(f"{name} cannot represent a non-string value: {print_ast(node)}", node)
    return node.value


def _require_string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise GraphQLError(f"{name} cannot represent a non-string value: {value!r}")
    return value


# Email

def parse_email(value: Any) -> str:
    value = _require_string("Email", value)
    try:
        return _email_adapter.validate_python(value)
    except PydanticValidationError as e:
        raise GraphQLError(f"Email cannot represent an invalid address: {value!r}") from e


GraphQLEmail = GraphQLScalarType(
    name="Email",
    description="An email address",
    serialize=lambda value: _require_string("Email", value),
    parse_value=parse_email,
    parse_literal=lambda node, _variables=None: parse_email(_string_literal("Email", node)),
)


# JSON

GraphQLJSON = GraphQLScalarType(
    name="JSON",
    description="Any JSON value",
    serialize=lambda value: value,
    parse_value=lambda value: value,
    parse_literal=lambda node, variables=None: value_from_ast_untyped(node, variables),
)


# SemanticVersion

def parse_semantic_version(value: Any) -> str:
    value = _require_string("SemanticVersion", value)
    if not semver.is_valid(value):
        raise GraphQLError(f"SemanticVersion cannot represent an invalid version: {value!r}")
    return value


GraphQLSemanticVersion = GraphQLScalarType(
    name="SemanticVersion",
    description="A semantic version, e.g. 1.2.3",
    serialize=parse_semantic_version,
    parse_value=parse_semantic_version,
    parse_literal=lambda node, _variables=None: parse_semantic_version(
        _string_literal("SemanticVersion", node)
    ),
)


# Markdown

GraphQLMarkdown = GraphQLScalarType(
    name="Markdown",
    description="Markdown formatted text",
    serialize=lambda value: _require_string("Markdown", value),
    parse_value=lambda value: _require_string("Markdown", value),
    parse_literal=lambda node, _variables=None: _string_literal("Markdown", node),
)


# DateTime

def parse_date_time(value: Any) -> str:
    value = _require_string("DateTime", value)
    try:
        isodatetime.to_datetime(value)
    except ValueError as e:
        raise GraphQLError(f"DateTime cannot represent an invalid timestamp: {value!r}") from e
    return value


GraphQLDateTime = GraphQLScalarType(
    name="DateTime",
    description="An ISO 8601 timestamp",
    serialize=parse_date_time,
    parse_value=parse_date_time,
    parse_literal=lambda node, _variables=None: parse_date_time(
        _string_literal("DateTime", node)
    ),
)

SCALARS = (
    GraphQLEmail,
    GraphQLJSON,
    GraphQLSemanticVersion,
    GraphQLMarkdown,
    GraphQLDateTime,
)
