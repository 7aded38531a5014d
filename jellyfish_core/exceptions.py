"""Custom exceptions for Jellyfish Core.

Every error raised on purpose by the kernel, the action worker or the API
derives from JellyfishError. main.py maps each class to an HTTP status code
and a JSON error body of the form:

    {"error": {"type": "<ClassName>", "message": "...", "details": {...}}}
"""


class JellyfishError(Exception):
    """Base exception for all Jellyfish errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ResourceNotFound(JellyfishError):
    """A card (or other resource) does not exist or is not visible."""


class ActionNotFound(ResourceNotFound):
    """The requested action card or its handler does not exist."""


class ValidationError(JellyfishError):
    """Request data failed validation."""


class SchemaMismatch(ValidationError):
    """A card or argument object does not match its JSON Schema."""


class UnknownCardType(ValidationError):
    """A card references a type card that does not exist."""


class ElementAlreadyExists(JellyfishError):
    """A card with the same slug and version already exists."""


class AuthenticationError(JellyfishError):
    """Expected authentication failure (bad token, bad password, bad session)."""


class SessionExpired(AuthenticationError):
    """The session card exists but its expiration has passed."""


class PermissionsError(JellyfishError):
    """The actor has no role that grants the requested access."""


class DatabaseError(JellyfishError):
    """Database operation failed."""
