"""Password hashing for user cards.

User cards keep a bcrypt hash in data.hash. The property is writeOnly in
the user type schema, so the kernel never returns it; code that needs to
verify a password reads the raw card through the database Core.
"""

import logging

import bcrypt

from ..config import settings
from ..db import get_core
from ..utils import semver

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_work_factor)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """Check a password against a bcrypt hash.

    A missing or malformed hash never verifies.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def get_password_hash(user_id: str) -> str | None:
    """Read the stored hash of a user card, bypassing permission masking."""
    core = get_core()
    user = core.card.get_by_id(user_id)
    if user is None or semver.base_slug(user["type"]) != "user":
        return None
    return user["data"].get("hash")


def verify_user_password(user_id: str, password: str) -> bool:
    return verify_password(password, get_password_hash(user_id))
