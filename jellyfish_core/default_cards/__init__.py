"""Default cards shipped with the server.

Cards are stored as JSON files: core/ holds the cards the kernel needs to
evaluate permissions at all, contrib/ the types, roles, relationships, views
and actions the server adds on top. Order matters: a card can only be
inserted once its type card exists.
"""

import json
from pathlib import Path

CARDS_DIR = Path(__file__).parent

# Written before any session exists
CORE_BOOTSTRAP = (
    "card",
    "type",
    "user",
    "session",
    "role",
    "role-user-admin",
    "user-admin",
    "role-user-guest",
    "user-guest",
)

# Written with the admin session once it exists
CORE_CARDS = (
    "link",
    "relationship",
    "view",
    "action",
    "action-request",
    "org",
)

CONTRIB_CARDS = (
    # Types
    "message",
    "whisper",
    "contact",

    # Roles
    "role-user-community",

    # Relationships
    "relationship-event-is-attached-to-any",
    "relationship-contact-is-attached-to-user",
    "relationship-user-is-member-of-org",

    # Views
    "view-active",
    "view-all-messages",

    # Actions
    "action-create-card",
    "action-update-card",
    "action-delete-card",
    "action-create-event",
    "action-create-user",
    "action-create-session",
    "action-set-password",
    "action-maintain-contact",
)


def load(group: str, name: str) -> dict:
    """Load one card fixture, e.g. load("contrib", "message")."""
    with open(CARDS_DIR / group / f"{name}.json", "r") as f:
        return json.load(f)
