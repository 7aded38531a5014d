"""action-delete-card: soft-delete the target card.

Cards are never removed from the store; deleting one sets active to false.
"""

from .result import summarize


def handler(session, context, card, request):
    type_card = context.get_type_card(session, card["type"])
    result = context.patch_card(session, type_card, {
        "actor": request.actor,
        "reason": request.arguments.get("reason"),
    }, card, [{"op": "replace", "path": "/active", "value": False}])
    return summarize(result)
