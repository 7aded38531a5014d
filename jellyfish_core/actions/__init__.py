"""Action library: handlers, their context and the worker that runs them."""

from .context import WorkerContext
from .schemas import ActionRequest, HandlerRequest
from .worker import Worker

__all__ = ["ActionRequest", "HandlerRequest", "Worker", "WorkerContext"]
