"""Action execution.

Worker.execute() resolves the action card and its target, validates both
along with the arguments, runs the registered handler and records the
outcome as an action-request card. Handler errors are recorded, then
re-raised to the caller.
"""

import logging
import re
from typing import Any

from ..exceptions import ActionNotFound, JellyfishError, ResourceNotFound
from ..kernel import Kernel, json_schema
from ..schema.types import CardReference
from ..utils import isodatetime, semver, uid
from .context import WorkerContext
from .handlers import HANDLERS, Handler
from .schemas import ActionRequest, HandlerRequest

logger = logging.getLogger(__name__)

ACTION_REQUEST_TYPE = "action-request@1.0.0"

# Argument values never stored in action-request cards
SENSITIVE_ARGUMENT = re.compile(r"password", re.IGNORECASE)
REDACTED = "[REDACTED]"


def arguments_schema(arguments: dict[str, Any]) -> dict:
    """Schema requiring every declared argument and nothing else."""
    return {
        "type": "object",
        "additionalProperties": False,
        "required": list(arguments),
        "properties": arguments,
    }


def redact(arguments: dict[str, Any]) -> dict[str, Any]:
    return {
        key: REDACTED if SENSITIVE_ARGUMENT.search(key) else value
        for key, value in arguments.items()
    }


class Worker:
    """Runs actions on behalf of sessions."""

    def __init__(self, kernel: Kernel, handlers: dict[str, Handler] | None = None):
        self.kernel = kernel
        self.handlers = dict(HANDLERS if handlers is None else handlers)
        self.context = WorkerContext(kernel, kernel.sessions["admin"])

    def get_action(self, session: str, action: str) -> tuple[dict, Handler]:
        """Get an action card and its handler.

        Raises:
            ActionNotFound: If either is missing
        """
        action_card = self.kernel.get_card_by_slug(session, action)
        if action_card is None or semver.base_slug(action_card["type"]) != "action":
            raise ActionNotFound(f"Unknown action: {action}", {"action": action})

        handler = self.handlers.get(action_card["slug"])
        if handler is None:
            raise ActionNotFound(
                f"No handler for action: {action_card['slug']}",
                {"action": action_card["slug"]}
            )
        return action_card, handler

    def get_target(self, session: str, reference: str) -> dict:
        if uid.is_uuid(reference):
            target = self.kernel.get_card_by_id(session, reference)
        else:
            target = self.kernel.get_card_by_slug(session, reference)

        if target is None:
            raise ResourceNotFound(f"Card not found: {reference}", {"card": reference})
        return target

    def validate(self, action_card: dict, target: dict, arguments: dict) -> None:
        """Check the action card, its target and the arguments.

        Raises:
            SchemaMismatch: On the first failing check
        """
        action_type = self.kernel.get_card_by_slug(
            self.context.privileged_session, action_card["type"]
        )
        json_schema.validate(
            action_type["data"]["schema"], action_card, "Invalid action card"
        )
        json_schema.validate(
            action_card["data"]["filter"], target, "Target does not match filter"
        )
        json_schema.validate(
            arguments_schema(action_card["data"]["arguments"]),
            arguments,
            "Arguments do not match"
        )

    def execute(self, session: str, request: ActionRequest | dict) -> dict:
        """Run an action and return a summary of the card it produced.

        Raises:
            ActionNotFound: If the action or its handler is unknown
            ResourceNotFound: If the target card is not visible
            SchemaMismatch: If validation fails
            JellyfishError: Whatever the handler raises
        """
        if isinstance(request, dict):
            request = ActionRequest.model_validate(request)

        actor = self.kernel.get_session_user(session)
        action_card, handler = self.get_action(session, request.action)
        target = self.get_target(session, request.card)
        self.validate(action_card, target, request.arguments)

        handler_request = HandlerRequest(
            action=CardReference.of(action_card),
            actor=actor["id"],
            card=target["id"],
            timestamp=isodatetime.now(),
            arguments=request.arguments,
        )

        logger.info("Executing %s on %s as %s",
                    action_card["slug"], target["slug"], actor["slug"])

        try:
            result = handler(session, self.context, target, handler_request)
        except Exception as e:
            message = e.message if isinstance(e, JellyfishError) else str(e)
            logger.warning("Action %s failed: %s", action_card["slug"], message)
            self.record(handler_request, error=True, data={
                "type": type(e).__name__,
                "message": message,
            })
            raise

        self.record(handler_request, error=False, data=result)
        return result

    def record(self, request: HandlerRequest, error: bool, data: Any) -> dict:
        """Store an executed action-request card."""
        return self.kernel.insert_card(self.context.privileged_session, {
            "slug": self.context.get_event_slug("action-request"),
            "type": ACTION_REQUEST_TYPE,
            "data": {
                "action": request.action,
                "actor": request.actor,
                "timestamp": request.timestamp,
                "input": {"id": request.card},
                "arguments": redact(request.arguments),
                "executed": True,
                "result": {
                    "error": error,
                    "timestamp": isodatetime.now(),
                    "data": data,
                },
            },
        })
