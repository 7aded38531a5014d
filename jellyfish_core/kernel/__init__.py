"""Card kernel: validation, permission filtering, links and queries."""

from .kernel import Kernel

__all__ = ["Kernel"]
