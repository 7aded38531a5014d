"""JWT session tokens.

A token's subject is the id of a session card; the kernel resolves the
session to its actor on every request, so revoking or expiring the session
card invalidates the token as well.
"""

from datetime import timedelta

import jwt

from ..config import settings
from ..schema.types import Timestamp
from ..utils import isodatetime
from .schemas import TokenPayload

ALGORITHM = "HS256"


def generate_access_token(session_id: str, username: str, expires_at: str | None = None) -> str:
    """Create a signed token for a session card.

    Args:
        session_id: Id of the session card (becomes the "sub" claim)
        username: Slug of the session's actor, for clients
        expires_at: Session expiration; defaults to now + session_expiry_days
    """
    issued = Timestamp.now().to_datetime()
    if expires_at is None:
        expires = issued + timedelta(days=settings.session_expiry_days)
    else:
        expires = isodatetime.to_datetime(expires_at)

    payload = TokenPayload(
        sub=session_id,
        username=username,
        iat=int(issued.timestamp()),
        exp=int(expires.timestamp()),
    )
    return jwt.encode(payload.model_dump(), settings.jwt_secret_key, algorithm=ALGORITHM)


def validate_access_token(token: str) -> TokenPayload:
    """Decode and verify a token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is malformed or badly signed
    """
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])
    return TokenPayload(**payload)
