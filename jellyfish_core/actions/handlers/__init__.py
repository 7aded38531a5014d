"""Action handlers, keyed by the slug of their action card.

A handler is called as handler(session, context, card, request), where card
is the already validated target card and request a HandlerRequest. It
returns the id, slug, type and version of the card it produced.
"""

from collections.abc import Callable

from . import (
    create_card,
    create_event,
    create_session,
    create_user,
    delete_card,
    maintain_contact,
    set_password,
    update_card,
)

Handler = Callable[..., dict]

HANDLERS: dict[str, Handler] = {
    "action-create-card": create_card.handler,
    "action-update-card": update_card.handler,
    "action-delete-card": delete_card.handler,
    "action-create-event": create_event.handler,
    "action-create-user": create_user.handler,
    "action-create-session": create_session.handler,
    "action-set-password": set_password.handler,
    "action-maintain-contact": maintain_contact.handler,
}

__all__ = ["HANDLERS", "Handler"]
