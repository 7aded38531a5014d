"""Query request schemas."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class QueryOptions(BaseModel):
    """Paging and sorting for a query."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int | None = Field(default=None, ge=0, le=1000)
    skip: int = Field(default=0, ge=0)
    sort_by: str | list[str] | None = Field(default=None, alias="sortBy")
    sort_dir: Literal["asc", "desc"] = Field(default="asc", alias="sortDir")


class QueryRequest(BaseModel):
    """A query body of the form {"query": ..., "options": {...}}.

    query is either a JSON Schema or the id or slug of a view card.
    """

    query: dict[str, Any] | str
    options: QueryOptions = Field(default_factory=QueryOptions)
