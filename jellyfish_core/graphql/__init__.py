"""GraphQL interface: custom scalars, type generation from type cards, resolvers."""

from .schema import build_schema, get_schema

__all__ = ["build_schema", "get_schema"]
