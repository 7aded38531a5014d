"""Authentication endpoints.

- POST /auth/login  - Exchange a username and password for a token
- POST /auth/logout - Deactivate the session behind the token
- GET  /auth/me     - The user behind the token

Logging in runs the action-create-session action with the admin session,
so the password check and the session card go through the action worker.
"""

import logging

from flask import Blueprint, g, jsonify

from ..api import get_kernel, get_worker
from ..api.validation import validate_request
from ..exceptions import AuthenticationError
from . import token
from .decorators import auth_required
from .schemas import TokenResponse, UserLogin, UserResponse

logger = logging.getLogger(__name__)


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/auth/login", methods=["POST"])
@validate_request
def login(data: UserLogin):
    """
    Authenticate a user and return a JWT token.

    Example request:
    ```json
    {
        "username": "jane",
        "password": "SecurePass123"
    }
    ```

    Example response:
    ```json
    {
        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
        "token_type": "bearer",
        "session": "6f1c5a9e-...",
        "user": {"id": "...", "slug": "user-jane", "email": "jane@example.com", ...}
    }
    ```
    """
    kernel = get_kernel()
    admin_session = kernel.sessions["admin"]

    user = kernel.get_card_by_slug(admin_session, f"user-{data.username}")
    if user is None or not user["active"] or user["type"] != "user@1.0.0":
        logger.warning("Failed login attempt for username: %s", data.username)
        raise AuthenticationError(
            "Invalid username or password",
            {"username": data.username}
        )

    result = get_worker().execute(admin_session, {
        "action": "action-create-session",
        "card": user["id"],
        "type": user["type"],
        "arguments": {"password": data.password},
    })
    session = kernel.get_card_by_id(admin_session, result["id"])

    access_token = token.generate_access_token(
        session["id"], user["slug"], session["data"].get("expiration")
    )

    logger.info("Successful login: %s", user["slug"])

    return jsonify(
        TokenResponse(
            access_token=access_token,
            session=session["id"],
            user=UserResponse.from_card(user)
        ).model_dump()
    ), 200


@auth_bp.route("/auth/logout", methods=["POST"])
@auth_required
def logout():
    """Deactivate the current session card, invalidating its tokens."""
    kernel = get_kernel()
    admin_session = kernel.sessions["admin"]
    session = kernel.get_card_by_id(admin_session, g.session)
    kernel.patch_card(admin_session, session, [
        {"op": "replace", "path": "/active", "value": False}
    ])
    logger.info("Logged out: %s", g.actor["slug"])
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.route("/auth/me", methods=["GET"])
@auth_required
def get_current_user():
    """Get the user behind the bearer token."""
    return jsonify(UserResponse.from_card(g.actor).model_dump()), 200
