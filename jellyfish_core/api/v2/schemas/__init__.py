"""Pydantic schemas for the v2 API."""

from .query import QueryOptions, QueryRequest

__all__ = ["QueryOptions", "QueryRequest"]
