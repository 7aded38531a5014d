"""action-create-session: log in as the target user."""

import logging

from ...auth import service
from ...config import settings
from ...exceptions import AuthenticationError
from ...utils import isodatetime
from .result import summarize

logger = logging.getLogger(__name__)


def handler(session, context, card, request):
    if not service.verify_user_password(card["id"], request.arguments["password"]):
        logger.warning("Invalid password for %s", card["slug"])
        raise AuthenticationError("Invalid password", {"user": card["slug"]})

    type_card = context.get_type_card(session, "session")
    result = context.insert_card(session, type_card, {"actor": request.actor}, {
        "slug": context.get_event_slug("session"),
        "data": {
            "actor": card["id"],
            "expiration": isodatetime.from_now(days=settings.session_expiry_days),
        },
    })

    logger.info("Opened session %s for %s", result["id"], card["slug"])
    return summarize(result)
