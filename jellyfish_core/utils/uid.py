"""UUID generation utilities.

This module centralizes all UUID generation. This is the ONLY module that
should import uuid4. All other code should use uid.generate_uuid().
"""

from uuid import UUID, uuid4


def generate_uuid() -> str:
    """Generate a random UUID v4 as a string."""
    return str(uuid4())


def is_uuid(value: object) -> bool:
    """Check whether a value is a UUID string (any version)."""
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True
