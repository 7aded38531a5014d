"""Depth-first traversal of a type card into GraphQL types.

For every chunk, starting with the card itself, each handler class is
instantiated and asked whether it can handle the chunk. The heaviest willing
handler wins. Its children are visited first, each under the name the
handler gives it (if any), so that nested object types get names like
MessageDataPayload. The handler then combines the child results in process().

Chunks no handler accepts are dropped with a warning and yield None.
"""

from typing import Any

from .context import SchemaGeneratorContext
from .handlers import BaseHandler


class CardVisitor:
    """Turns one type card into a GraphQL type."""

    def __init__(
        self,
        card: dict,
        handlers: tuple[type[BaseHandler], ...],
        context: SchemaGeneratorContext
    ):
        self.card = card
        self.handlers = handlers
        self.context = context
        self.logger = context.logger

    def handler_for_chunk(self, chunk: Any, depth: int) -> BaseHandler | None:
        viable = [
            handler
            for handler in (cls(chunk, depth, self.context) for cls in self.handlers)
            if handler.can_handle()
        ]
        if not viable:
            self.logger.warning("Dropping chunk at depth %d because it cannot be handled: %r",
                                depth, chunk)
            return None

        # sorted() is stable, so equal weights keep the handler order
        return sorted(viable, key=lambda handler: handler.weight(), reverse=True)[0]

    def visit(self, chunk: Any = None, depth: int = 0) -> Any:
        if depth == 0 and chunk is None:
            chunk = self.card

        handler = self.handler_for_chunk(chunk, depth)
        if handler is None:
            return None

        root_name = handler.generate_type_name() if depth == 0 else None
        if root_name:
            self.context.push_name(root_name)

        child_results = []
        for index, child in enumerate(handler.children()):
            child_name = handler.name_for_child(index)
            if child_name:
                self.context.push_name(child_name)
                child_results.append(self.visit(child, depth + 1))
                self.context.pop_name()
            else:
                child_results.append(self.visit(child, depth + 1))

        result = handler.process(child_results)

        if root_name:
            self.context.pop_name()

        return result
