"""action-maintain-contact: keep a contact card in sync with a user.

The contact is named after the user ("user-jane" gets "contact-jane") and is
linked to it as "is attached to user" / "has contact". Contacts are written
with the privileged session, since the user itself cannot always see them.
"""

import logging

from .result import summarize

logger = logging.getLogger(__name__)

CONTACT_VERB = "is attached to user"
CONTACT_INVERSE = "has contact"


def _profile(user: dict) -> dict:
    profile = {}
    if user["data"].get("email"):
        profile["email"] = user["data"]["email"]

    user_profile = user["data"].get("profile") or {}
    for key in ("name", "about"):
        if key in user_profile:
            profile[key] = user_profile[key]
    return profile


def handler(session, context, card, request):
    privileged = context.privileged_session
    slug = f"contact-{card['slug'].removeprefix('user-')}"
    type_card = context.get_type_card(privileged, "contact")
    profile = _profile(card)

    contact = context.get_card_by_slug(privileged, f"{slug}@latest")
    if contact is None:
        contact = context.insert_card(privileged, type_card, {"actor": request.actor}, {
            "slug": slug,
            "name": card.get("name") or card["slug"],
            "data": {"source": "user", "profile": profile},
        })
        context.link(privileged, CONTACT_VERB, CONTACT_INVERSE, contact, card)
        logger.info("Created contact %s for %s", contact["slug"], card["slug"])
        return summarize(contact)

    patch = [{"op": "replace", "path": "/data/profile", "value": profile}]
    if not contact["active"]:
        patch.append({"op": "replace", "path": "/active", "value": True})

    contact = context.patch_card(privileged, type_card, {"actor": request.actor}, contact, patch)
    logger.info("Updated contact %s for %s", contact["slug"], card["slug"])
    return summarize(contact)
