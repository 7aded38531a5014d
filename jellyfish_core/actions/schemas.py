"""Pydantic models for action requests."""

from typing import Any

from pydantic import BaseModel, Field


class ActionRequest(BaseModel):
    """An action as posted by a client.

    card is the target card id, or its slug when not a UUID.
    """

    action: str = Field(..., min_length=1)
    card: str = Field(..., min_length=1)
    type: str | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)


class HandlerRequest(BaseModel):
    """What a handler receives once the worker has validated the action."""

    action: str
    actor: str
    card: str
    timestamp: str
    arguments: dict[str, Any]
