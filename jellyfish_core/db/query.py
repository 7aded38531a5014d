"""SQL fragment helpers for card updates.

Values are always bound as parameters. Column names are interpolated, so
callers must only pass column names from a trusted whitelist.
"""

from typing import Any


def build_update_clause(
    data: dict[str, Any],
    exclude: set[str] | None = None,
    skip_none: bool = True
) -> tuple[str, list[Any]]:
    """Build a SET clause for an UPDATE statement.

    Args:
        data: Column names mapped to new values
        exclude: Column names that must never be updated
        skip_none: Leave columns whose value is None alone. With False,
            None is bound and the column is set to NULL.

    Returns:
        Tuple of ("col_a = ?, col_b = ?", [value_a, value_b]).
        The clause is empty when nothing is left to update.
    """
    exclude = exclude or set()

    assignments = []
    params = []
    for column, value in data.items():
        if column in exclude or (skip_none and value is None):
            continue
        assignments.append(f"{column} = ?")
        params.append(value)

    return ", ".join(assignments), params
