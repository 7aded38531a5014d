"""action-create-card: insert a card of the target type."""

import logging

from .result import summarize

logger = logging.getLogger(__name__)


def handler(session, context, card, request):
    properties = dict(request.arguments["properties"])
    properties.setdefault("slug", context.get_event_slug(card["slug"]))

    result = context.insert_card(session, card, {
        "actor": request.actor,
        "reason": request.arguments.get("reason"),
    }, properties)

    logger.info("Created card %s of type %s", result["slug"], result["type"])
    return summarize(result)
