"""action-create-event: attach a message or whisper to the target card.

The event is written with the caller's session. The link to the target is
written with the privileged session, once the caller has been able to see
the target and write the event.
"""

import logging

from .result import summarize

logger = logging.getLogger(__name__)

ATTACHED_VERB = "is attached to"
ATTACHED_INVERSE = "has attached element"


def handler(session, context, card, request):
    event_type = request.arguments["type"]
    type_card = context.get_type_card(session, event_type)

    event = context.insert_card(session, type_card, {"actor": request.actor}, {
        "slug": context.get_event_slug(event_type),
        "tags": request.arguments["tags"],
        "data": {
            "actor": request.actor,
            "timestamp": request.timestamp,
            "target": card["id"],
            "payload": request.arguments["payload"],
        },
    })

    context.link(context.privileged_session, ATTACHED_VERB, ATTACHED_INVERSE, event, card)
    logger.info("Attached %s %s to %s", event_type, event["slug"], card["slug"])
    return summarize(event)
