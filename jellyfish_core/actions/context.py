"""The context object handed to action handlers.

Handlers never talk to the kernel directly. Every card they read or write
goes through the context, which runs the operation under the session it is
given, so the kernel's permission filter and schema validation apply.
"""

import logging
from typing import Any

from ..exceptions import UnknownCardType
from ..kernel import Kernel
from ..kernel import links
from ..schema.types import CardReference
from ..utils import uid

logger = logging.getLogger(__name__)


class WorkerContext:
    """Card access for action handlers."""

    def __init__(self, kernel: Kernel, privileged_session: str):
        self.kernel = kernel
        self.privileged_session = privileged_session

    def get_card_by_id(self, session: str, card_id: str) -> dict | None:
        return self.kernel.get_card_by_id(session, card_id)

    def get_card_by_slug(self, session: str, slug: str) -> dict | None:
        return self.kernel.get_card_by_slug(session, slug)

    def query(self, session: str, schema: dict, **options: Any) -> list[dict]:
        return self.kernel.query(session, schema, **options)

    def get_type_card(self, session: str, slug: str) -> dict:
        """Get a type card by versioned reference, or the latest one by slug.

        Raises:
            UnknownCardType: If the session cannot see such a type card
        """
        reference = slug if "@" in slug else f"{slug}@latest"
        type_card = self.kernel.get_card_by_slug(session, reference)
        if type_card is None or type_card["type"] != "type@1.0.0":
            raise UnknownCardType(f"Unknown type: '{slug}'", {"type": slug})
        return type_card

    @staticmethod
    def get_event_slug(type_slug: str) -> str:
        """Generate a unique slug for a new card of a type."""
        return f"{type_slug}-{uid.generate_uuid()}"

    def insert_card(
        self,
        session: str,
        type_card: dict,
        options: dict,
        obj: dict
    ) -> dict:
        """Insert (or with options["override"], upsert) a card of type_card's type."""
        card = {**obj, "type": CardReference.of(type_card)}
        return self.kernel.insert_card(session, card, override=options.get("override", False))

    def patch_card(
        self,
        session: str,
        type_card: dict,
        options: dict,
        card: dict,
        patch: list[dict]
    ) -> dict:
        """Apply a JSON Patch to a card of type_card's type."""
        if card["type"] != CardReference.of(type_card):
            raise UnknownCardType(
                f"Card {card['slug']} is not of type {CardReference.of(type_card)}",
                {"type": card["type"]}
            )
        return self.kernel.patch_card(session, card, patch)

    def link(
        self,
        session: str,
        verb: str,
        inverse: str,
        source: dict,
        target: dict
    ) -> dict:
        """Link source to target under verb (and target to source under inverse)."""
        link_type = self.get_type_card(session, "link")
        card = links.build(verb, inverse, source, target)
        logger.debug("Linking %s '%s' %s", source["slug"], verb, target["slug"])
        return self.insert_card(session, link_type, {}, card)
