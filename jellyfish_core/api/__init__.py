"""HTTP API for Jellyfish Core.

The kernel and the worker live in app.extensions["jellyfish"], set up by
main.initialize_database(); endpoints reach them through get_kernel() and
get_worker().
"""

from typing import Any

from flask import current_app, jsonify

from ..actions import Worker
from ..kernel import Kernel


def get_kernel() -> Kernel:
    return current_app.extensions["jellyfish"]["kernel"]


def get_worker() -> Worker:
    return current_app.extensions["jellyfish"]["worker"]


def respond(data: Any, status: int = 200):
    """Wrap a payload in the v2 response envelope."""
    return jsonify({"error": False, "data": data}), status
