"""Request authentication.

Every API request runs under a session card. Requests carrying
``Authorization: Bearer <token>`` use the session named by the token's
subject; requests without the header fall back to the guest session.

After authentication flask.g holds:
- g.session: Session card id
- g.actor: User card of the session (writeOnly fields removed)
- g.is_guest: Whether the request runs as the guest
"""

import logging
from functools import wraps

import jwt
from flask import g, request

from ..api import get_kernel
from ..exceptions import AuthenticationError
from . import token

logger = logging.getLogger(__name__)


def get_bearer_token() -> str | None:
    """Get the token from the Authorization header, if any.

    Raises:
        AuthenticationError: If the header is present but not a bearer token
    """
    header = request.headers.get("Authorization")
    if header is None:
        return None

    parts = header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise AuthenticationError(
            "Invalid authorization header format",
            {"expected": "Authorization: Bearer <token>"}
        )
    return parts[1]


def _authenticate_request():
    """Resolve the request's session and actor into flask.g.

    Raises:
        AuthenticationError: If the token is invalid or its session is unusable
        SessionExpired: If the session card has expired
    """
    kernel = get_kernel()
    token_str = get_bearer_token()

    if token_str is None:
        g.session = kernel.sessions["guest"]
        g.is_guest = True
    else:
        try:
            payload = token.validate_access_token(token_str)
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise AuthenticationError("Token has expired", {"code": "token_expired"})
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid JWT token: %s", e)
            raise AuthenticationError("Invalid token", {"code": "invalid_token"})
        g.session = payload.sub
        g.is_guest = False

    g.actor = kernel.get_session_user(g.session)
    logger.debug("Request authenticated as %s", g.actor["slug"])


def auth_required(f):
    """Require a real (non-guest) session.

    Example:
    ```python
    @auth_required
    def protected_endpoint():
        actor = g.actor
        ...
    ```
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        _authenticate_request()
        if g.is_guest:
            raise AuthenticationError(
                "Authentication required",
                {"code": "missing_auth"}
            )
        return f(*args, **kwargs)

    return wrapper
