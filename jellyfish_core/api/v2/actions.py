"""Action endpoint.

- POST /api/v2/action - Run an action as the request's session

Example request:
```json
{
    "card": "user",
    "type": "type@1.0.0",
    "action": "action-create-user",
    "arguments": {"username": "jane", "email": "jane@example.com", "password": "..."}
}
```

Example response:
```json
{"error": false, "data": {"id": "...", "slug": "user-jane", "type": "user@1.0.0", "version": "1.0.0"}}
```
"""

import logging

from flask import Blueprint, g

from ...actions import ActionRequest
from ..validation import validate_request
from .. import get_worker, respond

logger = logging.getLogger(__name__)


actions_bp = Blueprint("actions", __name__)


@actions_bp.post("/action")
@validate_request
def run_action(data: ActionRequest):
    result = get_worker().execute(g.session, data)
    return respond(result)
