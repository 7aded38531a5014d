"""Query resolvers.

info.context is a dict holding the kernel, the request's session id and
the client ip. Kernel errors are logged here and re-raised; graphql-core
reports them in the response's "errors" list.
"""

import logging

from ..api.v2.query import query_api
from ..exceptions import JellyfishError

logger = logging.getLogger(__name__)


def resolve_card(_root, info, id):
    kernel, session = info.context["kernel"], info.context["session"]
    try:
        return kernel.get_card_by_id(session, id)
    except JellyfishError as e:
        logger.warning("card(id: %s) failed: %s", id, e.message)
        raise


def resolve_card_by_slug(_root, info, slug):
    kernel, session = info.context["kernel"], info.context["session"]
    try:
        return kernel.get_card_by_slug(session, slug)
    except JellyfishError as e:
        logger.warning("cardBySlug(slug: %s) failed: %s", slug, e.message)
        raise


def resolve_cards(_root, info, query, limit=None, skip=0):
    kernel, session = info.context["kernel"], info.context["session"]
    try:
        return query_api(kernel, session, query, {"limit": limit, "skip": skip},
                         info.context.get("ip"))
    except JellyfishError as e:
        logger.warning("cards(query: %r) failed: %s", query, e.message)
        raise


def resolve_whoami(_root, info):
    kernel, session = info.context["kernel"], info.context["session"]
    try:
        return kernel.get_session_user(session)
    except JellyfishError as e:
        logger.warning("whoami failed: %s", e.message)
        raise
