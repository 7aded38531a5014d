"""SQL expression builder.

QueryBuilder composes expression nodes on a stack; the nodes in
expressions.py know how to format themselves as parameterized SQL.
"""

from .builder import QueryBuilder
from .expressions import (
    Expression,
    JoinExpression,
    SelectExpression,
    TableExpression,
)

__all__ = ["QueryBuilder", "Expression", "JoinExpression", "SelectExpression", "TableExpression"]
