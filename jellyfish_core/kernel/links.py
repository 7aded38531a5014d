"""Link cards and the relationships that allow them.

A link card connects data.from to data.to under a verb (the link's name) and
its inverse (data.inverseName). Links are only accepted when a relationship
card declares the verb pair for the base types involved, in either direction.
"""

import logging

from ..db.card import LINK_TYPE, CardOperations
from ..exceptions import SchemaMismatch
from ..utils import semver

logger = logging.getLogger(__name__)

RELATIONSHIP_TYPE = "relationship@1.0.0"
WILDCARD = "*"


def is_link(card: dict) -> bool:
    return semver.base_slug(card.get("type", "")) == "link"


def _pair_matches(pair: list[str], from_type: str, to_type: str) -> bool:
    left, right = pair
    return left in (WILDCARD, from_type) and right in (WILDCARD, to_type)


def find_relationship(
    backend: CardOperations,
    verb: str,
    inverse: str,
    from_type: str,
    to_type: str
) -> dict | None:
    """Find an active relationship card allowing the given link.

    Type arguments may be versioned references; only their base slugs count.
    """
    from_base = semver.base_slug(from_type)
    to_base = semver.base_slug(to_type)

    for relationship in backend.find({"type": RELATIONSHIP_TYPE, "active": True}):
        forward = relationship.get("name")
        reverse = relationship["data"].get("inverseName")
        pairs = relationship["data"].get("type_pairs") or []

        if forward == verb and reverse == inverse:
            if any(_pair_matches(pair, from_base, to_base) for pair in pairs):
                return relationship
        if forward == inverse and reverse == verb:
            if any(_pair_matches(pair, to_base, from_base) for pair in pairs):
                return relationship

    return None


def validate_link(backend: CardOperations, card: dict) -> None:
    """Check that a link card joins two existing cards through a known relationship.

    Raises:
        SchemaMismatch: If either end is missing or no relationship matches
    """
    data = card.get("data") or {}
    verb = card.get("name")
    inverse = data.get("inverseName")

    ends = {}
    for end in ("from", "to"):
        reference = data.get(end) or {}
        target = backend.get_by_id(reference.get("id"))
        if target is None:
            raise SchemaMismatch(
                f"Link {end} card does not exist: {reference.get('id')}",
                {"link": verb, end: reference}
            )
        ends[end] = target

    relationship = find_relationship(
        backend, verb, inverse, ends["from"]["type"], ends["to"]["type"]
    )
    if relationship is None:
        raise SchemaMismatch(
            f"No relationship allows linking {ends['from']['type']} "
            f"'{verb}' {ends['to']['type']}",
            {"name": verb, "inverseName": inverse}
        )


def stamp(backend: CardOperations, link: dict) -> None:
    """Record the link creation time on both of its ends."""
    timestamp = link["created_at"]
    backend.stamp_linked_at(link["data"]["from"]["id"], link["name"], timestamp)
    backend.stamp_linked_at(link["data"]["to"]["id"], link["data"]["inverseName"], timestamp)
    logger.debug("Stamped link %s between %s and %s",
                 link["name"], link["data"]["from"]["id"], link["data"]["to"]["id"])


def build(verb: str, inverse: str, source: dict, target: dict) -> dict:
    """Build the card for a link from source to target."""
    return {
        "slug": f"link-{source['id']}-{verb.replace(' ', '-')}-{target['id']}",
        "type": LINK_TYPE,
        "name": verb,
        "data": {
            "inverseName": inverse,
            "from": {"id": source["id"], "type": source["type"]},
            "to": {"id": target["id"], "type": target["type"]},
        },
    }
