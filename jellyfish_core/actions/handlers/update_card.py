"""action-update-card: apply a JSON Patch to the target card."""

from .result import summarize


def handler(session, context, card, request):
    type_card = context.get_type_card(session, card["type"])
    result = context.patch_card(session, type_card, {
        "actor": request.actor,
        "reason": request.arguments.get("reason"),
    }, card, request.arguments["patch"])
    return summarize(result)
