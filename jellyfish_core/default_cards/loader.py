"""Load the default cards into a freshly initialized kernel."""

import logging

from ..auth import service
from ..config import settings
from ..kernel import Kernel
from . import CONTRIB_CARDS, load

logger = logging.getLogger(__name__)


def load_default_cards(kernel: Kernel) -> None:
    """Upsert every contrib card with the admin session."""
    session = kernel.sessions["admin"]

    for name in CONTRIB_CARDS:
        card = load("contrib", name)
        logger.debug("Inserting default card %s (%s)", card["slug"], card["type"])
        kernel.insert_card(session, card, override=True)

    logger.info("Loaded %d default cards", len(CONTRIB_CARDS))


def set_admin_password(kernel: Kernel) -> None:
    """Give user-admin the configured password, if one is configured."""
    if not settings.admin_password:
        logger.info("No admin password configured, user-admin cannot log in")
        return

    session = kernel.sessions["admin"]
    admin = kernel.get_card_by_slug(session, "user-admin")
    if service.verify_user_password(admin["id"], settings.admin_password):
        return

    kernel.patch_card(session, admin, [{
        "op": "add",
        "path": "/data/hash",
        "value": service.hash_password(settings.admin_password),
    }])
    logger.info("Admin password updated")


def bootstrap(kernel: Kernel) -> Kernel:
    """Initialize the kernel and load the default cards."""
    kernel.initialize()
    load_default_cards(kernel)
    set_admin_password(kernel)
    return kernel
