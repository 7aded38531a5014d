"""Stack-based SQL query builder.

The builder does no query validation beyond arity checks; it only composes
expression nodes. Each method pushes a node, or pops its operands and pushes
the combined node, and returns the builder so calls can be chained.

Example:

    >>> builder = QueryBuilder()
    >>> builder.field("id").field("version").constant("1.0.0").function("coalesce", 2)
    >>> builder.as_("version").table("cards").from_().select()
    >>> builder.format_as_sql()
    'SELECT id, coalesce(version, ?) AS version FROM cards'
    >>> builder.parameters()
    ['1.0.0']
"""

from typing import Any

from .expressions import (
    AliasExpression,
    CastExpression,
    ConstantExpression,
    Expression,
    FieldExpression,
    FilterExpression,
    FromExpression,
    FunctionExpression,
    InfixExpression,
    JoinExpression,
    JsonPathExpression,
    SelectExpression,
    TableExpression,
)


class QueryBuilder:
    """Compose SQL from a stack of expressions."""

    def __init__(self):
        self.expressions: list[Expression] = []

    def _assert_at_least(self, count: int) -> None:
        if len(self.expressions) < count:
            raise ValueError(
                f"Expected expression stack to contain at least {count} values, "
                f"found {len(self.expressions)}"
            )

    def _pop(self, count: int) -> list[Expression]:
        """Pop `count` expressions, preserving their stack order."""
        self._assert_at_least(count)
        if count == 0:
            return []
        popped = self.expressions[-count:]
        del self.expressions[-count:]
        return popped

    def table(self, table_name: str) -> "QueryBuilder":
        self.expressions.append(TableExpression(table_name))
        return self

    def field(self, field_name: str) -> "QueryBuilder":
        self.expressions.append(FieldExpression(field_name))
        return self

    def field_from(self, table: str, field_name: str) -> "QueryBuilder":
        self.expressions.append(FieldExpression(field_name, table))
        return self

    def constant(self, value: Any) -> "QueryBuilder":
        self.expressions.append(ConstantExpression(value))
        return self

    def as_(self, alias: str) -> "QueryBuilder":
        """Replace the top expression with an alias of it."""
        (expression,) = self._pop(1)
        self.expressions.append(AliasExpression(expression, alias))
        return self

    def cast(self, type_name: str) -> "QueryBuilder":
        (expression,) = self._pop(1)
        self.expressions.append(CastExpression(expression, type_name))
        return self

    def function(self, name: str, argc: int) -> "QueryBuilder":
        """Replace the top `argc` expressions with a call to `name`."""
        args = self._pop(argc)
        self.expressions.append(FunctionExpression(name, args))
        return self

    def infix(self, operator: str) -> "QueryBuilder":
        lhs, rhs = self._pop(2)
        self.expressions.append(InfixExpression(operator, lhs, rhs))
        return self

    def eq(self) -> "QueryBuilder":
        return self.infix("=")

    def and_(self) -> "QueryBuilder":
        return self.infix("AND")

    def or_(self) -> "QueryBuilder":
        return self.infix("OR")

    def json_path(self, path: list[str | int] | str) -> "QueryBuilder":
        (expression,) = self._pop(1)
        self.expressions.append(JsonPathExpression(expression, path))
        return self

    def where(self) -> "QueryBuilder":
        (condition,) = self._pop(1)
        self.expressions.append(FilterExpression(condition))
        return self

    def join(self) -> "QueryBuilder":
        table, on = self._pop(2)
        self.expressions.append(JoinExpression(table, on))
        return self

    def left_join(self) -> "QueryBuilder":
        table, on = self._pop(2)
        self.expressions.append(JoinExpression(table, on, "LEFT"))
        return self

    def from_(self, argc: int = 1) -> "QueryBuilder":
        """Replace the top `argc` expressions with a FROM clause over them."""
        sources = self._pop(argc)
        self.expressions.append(FromExpression(sources))
        return self

    def select(self) -> "QueryBuilder":
        """Collapse the whole stack into a single SELECT expression."""
        self._assert_at_least(1)
        self.expressions = [SelectExpression(self.expressions)]
        return self

    def append(self, other: "QueryBuilder") -> "QueryBuilder":
        """Move every expression of another builder onto this one (destructive)."""
        self.expressions.extend(other.expressions)
        other.expressions = []
        return self

    def format_as_sql(self) -> str:
        """Format the top expression of the stack as SQL."""
        self._assert_at_least(1)
        return self.expressions[-1].format_as_sql()

    def parameters(self) -> list[Any]:
        """Parameters bound by format_as_sql(), in placeholder order."""
        self._assert_at_least(1)
        return self.expressions[-1].parameters()
