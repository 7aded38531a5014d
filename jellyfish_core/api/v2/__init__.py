"""API v2 endpoints for Jellyfish Core.

The ApiV2 blueprint aggregates the card and action endpoints and
authenticates every request before it reaches them. Requests without a
token run as the guest session.
"""

from flask import Blueprint

from ...auth.decorators import _authenticate_request
from ...config import settings
from . import actions, cards

api_v2_bp = Blueprint("api_v2", __name__, url_prefix=settings.api_v2_prefix)


@api_v2_bp.before_request
def authenticate():
    """Resolve the session of every API v2 request."""
    _authenticate_request()


api_v2_bp.register_blueprint(cards.cards_bp)
api_v2_bp.register_blueprint(actions.actions_bp)

__all__ = ["api_v2_bp"]
