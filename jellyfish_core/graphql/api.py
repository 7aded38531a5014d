"""GraphQL endpoint.

POST /graphql with {"query": ..., "variables": {...}, "operationName": ...}.
Requests authenticate like API v2 requests and fall back to the guest
session without a token.
"""

import logging

from flask import Blueprint, g, jsonify, request
from graphql import graphql_sync

from ..api import get_kernel
from ..auth.decorators import _authenticate_request
from ..config import settings
from ..exceptions import ValidationError
from .schema import get_schema

logger = logging.getLogger(__name__)


graphql_bp = Blueprint("graphql", __name__)


@graphql_bp.route(settings.graphql_path, methods=["POST"])
def execute():
    """
    Run a GraphQL query.

    Returns:
        200: {"data": ...} plus "errors" when resolvers failed
        400: Missing query
    """
    body = request.get_json(silent=True) or {}
    source = body.get("query")
    if not source or not isinstance(source, str):
        raise ValidationError("No GraphQL query")

    _authenticate_request()
    kernel = get_kernel()

    result = graphql_sync(
        get_schema(kernel),
        source,
        variable_values=body.get("variables"),
        operation_name=body.get("operationName"),
        context_value={
            "kernel": kernel,
            "session": g.session,
            "ip": request.remote_addr,
        },
    )

    response = {"data": result.data}
    if result.errors:
        response["errors"] = [error.formatted for error in result.errors]
        logger.info("GraphQL query finished with %d errors", len(result.errors))
    return jsonify(response), 200
