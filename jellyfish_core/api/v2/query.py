"""Query execution shared by the REST and GraphQL endpoints."""

import logging

from ...exceptions import ResourceNotFound
from ...kernel import Kernel
from ...kernel.permission_filter import get_view_schema
from ...utils import semver, uid
from .schemas import QueryOptions

logger = logging.getLogger(__name__)


def resolve_view(kernel: Kernel, session: str, reference: str) -> dict:
    """Get the schema of a view card named by id or slug.

    Raises:
        ResourceNotFound: If no such view is visible to the session
    """
    if uid.is_uuid(reference):
        view = kernel.get_card_by_id(session, reference)
    else:
        view = kernel.get_card_by_slug(session, reference)

    if view is None or semver.base_slug(view["type"]) != "view":
        raise ResourceNotFound(f"View not found: {reference}", {"view": reference})

    return get_view_schema(view) or {"type": "object"}


def query_api(
    kernel: Kernel,
    session: str,
    schema: dict | str,
    options: QueryOptions | dict | None,
    ip: str | None
) -> list[dict]:
    """Run a query for an API client.

    Args:
        schema: JSON Schema, view card, or view id/slug
        options: Paging and sorting
        ip: Client address, for the log
    """
    if isinstance(options, dict):
        options = QueryOptions.model_validate(options)
    options = options or QueryOptions()

    if isinstance(schema, str):
        schema = resolve_view(kernel, session, schema)

    logger.info("Query from %s", ip)
    return kernel.query(session, schema, **options.model_dump())
