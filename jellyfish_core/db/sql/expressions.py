"""SQL expression nodes used by the QueryBuilder.

Every node exposes:

- format_as_sql(wrap=False): the SQL text of the node. With wrap=True a node
  that would be ambiguous when nested (a sub-select, an infix expression) is
  parenthesized; nodes that are never ambiguous (tables, fields, constants)
  ignore the flag.
- parameters(): the values bound to the "?" placeholders of format_as_sql(),
  in the same order.
- is_queryable / is_join: tell FromExpression how to place the node. A
  queryable (table, aliased table, sub-select) is separated from the previous
  one by a comma, a join is appended with a space.
"""

import re
from typing import Any

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

INFIX_OPERATORS = frozenset({
    "=", "!=", "<>", "<", "<=", ">", ">=",
    "AND", "OR", "LIKE", "IS", "IS NOT",
})

JOIN_KINDS = frozenset({"LEFT", "INNER", "CROSS"})


def identifier(name: str) -> str:
    """Validate an SQL identifier (table, column, alias, function, type name)."""
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def _parenthesize(sql: str, wrap: bool) -> str:
    return f"({sql})" if wrap else sql


class Expression:
    """Base SQL expression."""

    is_join = False
    is_queryable = False

    def format_as_sql(self, wrap: bool = False) -> str:
        raise NotImplementedError

    def parameters(self) -> list[Any]:
        return []

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.format_as_sql()!r}>"


class TableExpression(Expression):
    """A named table reference."""

    is_queryable = True

    def __init__(self, table_name: str):
        self.table_name = identifier(table_name)

    def format_as_sql(self, wrap: bool = False) -> str:
        return self.table_name


class JoinExpression(Expression):
    """A join clause: [KIND ]JOIN <table> ON <condition>.

    The wrap flag is forwarded to the joined table so that joined sub-selects
    are parenthesized.
    """

    is_join = True

    def __init__(self, table: Expression, on: Expression, kind: str | None = None):
        if not table.is_queryable:
            raise ValueError(f"Cannot join a non-queryable expression: {table!r}")
        if kind is not None and kind not in JOIN_KINDS:
            raise ValueError(f"Unsupported join kind: {kind!r}")
        self.table = table
        self.on = on
        self.kind = kind

    def format_as_sql(self, wrap: bool = False) -> str:
        prefix = f"{self.kind} JOIN" if self.kind else "JOIN"
        return (
            f"{prefix} {self.table.format_as_sql(wrap=wrap)} "
            f"ON {self.on.format_as_sql()}"
        )

    def parameters(self) -> list[Any]:
        return self.table.parameters() + self.on.parameters()


class FieldExpression(Expression):
    """A column reference, optionally qualified by a table or alias."""

    def __init__(self, field_name: str, table: str | None = None):
        self.field_name = field_name if field_name == "*" else identifier(field_name)
        self.table = identifier(table) if table is not None else None

    def format_as_sql(self, wrap: bool = False) -> str:
        if self.table:
            return f"{self.table}.{self.field_name}"
        return self.field_name


class ConstantExpression(Expression):
    """A literal value, always bound as a parameter."""

    def __init__(self, value: Any):
        self.value = value

    def format_as_sql(self, wrap: bool = False) -> str:
        return "?"

    def parameters(self) -> list[Any]:
        return [self.value]


class AliasExpression(Expression):
    """<expression> AS <alias>."""

    def __init__(self, expression: Expression, alias: str):
        self.expression = expression
        self.alias = identifier(alias)

    @property
    def is_queryable(self) -> bool:
        return self.expression.is_queryable

    @property
    def is_join(self) -> bool:
        return self.expression.is_join

    def format_as_sql(self, wrap: bool = False) -> str:
        return f"{self.expression.format_as_sql(wrap=True)} AS {self.alias}"

    def parameters(self) -> list[Any]:
        return self.expression.parameters()


class CastExpression(Expression):
    """CAST(<expression> AS <type>)."""

    def __init__(self, expression: Expression, type_name: str):
        self.expression = expression
        self.type_name = identifier(type_name)

    def format_as_sql(self, wrap: bool = False) -> str:
        return f"CAST({self.expression.format_as_sql()} AS {self.type_name})"

    def parameters(self) -> list[Any]:
        return self.expression.parameters()


class FunctionExpression(Expression):
    """<name>(<arg>, <arg>, ...)."""

    def __init__(self, name: str, args: list[Expression]):
        self.name = identifier(name)
        self.args = args

    def format_as_sql(self, wrap: bool = False) -> str:
        args = ", ".join(arg.format_as_sql() for arg in self.args)
        return f"{self.name}({args})"

    def parameters(self) -> list[Any]:
        params = []
        for arg in self.args:
            params.extend(arg.parameters())
        return params


class InfixExpression(Expression):
    """<lhs> <operator> <rhs>. Nested operands are parenthesized."""

    def __init__(self, operator: str, lhs: Expression, rhs: Expression):
        if operator not in INFIX_OPERATORS:
            raise ValueError(f"Unsupported operator: {operator!r}")
        self.operator = operator
        self.lhs = lhs
        self.rhs = rhs

    def format_as_sql(self, wrap: bool = False) -> str:
        sql = (
            f"{self.lhs.format_as_sql(wrap=True)} {self.operator} "
            f"{self.rhs.format_as_sql(wrap=True)}"
        )
        return _parenthesize(sql, wrap)

    def parameters(self) -> list[Any]:
        return self.lhs.parameters() + self.rhs.parameters()


class JsonPathExpression(Expression):
    """json_extract(<expression>, <path>) over a JSON text column."""

    def __init__(self, expression: Expression, path: list[str | int] | str):
        self.expression = expression
        self.path = [path] if isinstance(path, str) else list(path)

    @property
    def json_path(self) -> str:
        text = "$"
        for key in self.path:
            if isinstance(key, int):
                text += f"[{key}]"
            elif IDENTIFIER_RE.match(key):
                text += f".{key}"
            else:
                escaped = key.replace('"', '\\"')
                text += f'."{escaped}"'
        return text

    def format_as_sql(self, wrap: bool = False) -> str:
        return f"json_extract({self.expression.format_as_sql()}, ?)"

    def parameters(self) -> list[Any]:
        return self.expression.parameters() + [self.json_path]


class FilterExpression(Expression):
    """WHERE <condition>."""

    def __init__(self, condition: Expression):
        self.condition = condition

    def format_as_sql(self, wrap: bool = False) -> str:
        return f"WHERE {self.condition.format_as_sql()}"

    def parameters(self) -> list[Any]:
        return self.condition.parameters()


class FromExpression(Expression):
    """FROM <queryable>[, <queryable>][ JOIN ...]."""

    def __init__(self, expressions: list[Expression]):
        for expression in expressions:
            if not (expression.is_queryable or expression.is_join):
                raise ValueError(f"Cannot select from {expression!r}")
        if not expressions or not expressions[0].is_queryable:
            raise ValueError("FROM must start with a queryable expression")
        self.expressions = expressions

    def format_as_sql(self, wrap: bool = False) -> str:
        sql = ""
        for expression in self.expressions:
            fragment = expression.format_as_sql(wrap=True)
            if not sql:
                sql = fragment
            elif expression.is_join:
                sql += f" {fragment}"
            else:
                sql += f", {fragment}"
        return f"FROM {sql}"

    def parameters(self) -> list[Any]:
        params = []
        for expression in self.expressions:
            params.extend(expression.parameters())
        return params


class SelectExpression(Expression):
    """SELECT <columns> [FROM ...] [WHERE ...].

    Column expressions keep their stack order; FROM and WHERE parts are
    placed after them regardless of where they sat on the stack. Several
    filters are combined with AND.
    """

    is_queryable = True

    def __init__(self, expressions: list[Expression]):
        self.columns = []
        self.sources = []
        self.filters = []
        for expression in expressions:
            if isinstance(expression, FromExpression):
                self.sources.append(expression)
            elif isinstance(expression, FilterExpression):
                self.filters.append(expression)
            else:
                self.columns.append(expression)
        if not self.columns:
            raise ValueError("SELECT requires at least one column expression")

    def _parts(self) -> list[Expression]:
        return self.columns + self.sources

    def format_as_sql(self, wrap: bool = False) -> str:
        columns = ", ".join(column.format_as_sql(wrap=True) for column in self.columns)
        sql = f"SELECT {columns}"
        for source in self.sources:
            sql += f" {source.format_as_sql()}"
        if self.filters:
            conditions = " AND ".join(
                f.condition.format_as_sql(wrap=len(self.filters) > 1) for f in self.filters
            )
            sql += f" WHERE {conditions}"
        return _parenthesize(sql, wrap)

    def parameters(self) -> list[Any]:
        params = []
        for part in self._parts():
            params.extend(part.parameters())
        for f in self.filters:
            params.extend(f.parameters())
        return params
