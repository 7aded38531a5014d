"""action-create-user: create a community user.

The password argument is hashed with bcrypt before the card is written; the
plain text never reaches the store.
"""

import logging

from ...auth import service
from .result import summarize

logger = logging.getLogger(__name__)

DEFAULT_ROLES = ["user-community"]


def handler(session, context, card, request):
    username = request.arguments["username"]

    user = context.insert_card(session, card, {"actor": request.actor}, {
        "slug": f"user-{username}",
        "name": username,
        "data": {
            "email": request.arguments["email"],
            "hash": service.hash_password(request.arguments["password"]),
            "roles": list(DEFAULT_ROLES),
        },
    })

    logger.info("Created user %s", user["slug"])
    return summarize(user)
