"""action-set-password: replace the password of the target user."""

import logging

from ...auth import service
from ...exceptions import AuthenticationError
from .result import summarize

logger = logging.getLogger(__name__)


def handler(session, context, card, request):
    if not service.verify_user_password(card["id"], request.arguments["currentPassword"]):
        raise AuthenticationError("Invalid current password", {"user": card["slug"]})

    type_card = context.get_type_card(session, card["type"])
    result = context.patch_card(session, type_card, {"actor": request.actor}, card, [{
        "op": "add",
        "path": "/data/hash",
        "value": service.hash_password(request.arguments["newPassword"]),
    }])

    logger.info("Password changed for %s", card["slug"])
    return summarize(result)
