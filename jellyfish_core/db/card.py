"""Card storage operations.

IMPORT CONVENTION:
- Core accesses these through core.card property
- NO direct import needed when using Core API

These operations are the raw backend: they perform no permission checks and
no schema validation. The kernel (jellyfish_core.kernel) is the only caller
that should be exposed to sessions.
"""

import json
import sqlite3
from typing import Any

from ..exceptions import DatabaseError, ElementAlreadyExists
from ..utils import isodatetime, uid
from .query import build_update_clause
from .sql import QueryBuilder

JSON_COLUMNS = ("markers", "tags", "links", "requires", "capabilities", "data", "linked_at")

COLUMNS = (
    "id", "slug", "type", "version", "name", "active",
    *JSON_COLUMNS,
    "created_at", "updated_at",
)

# Top-level card properties that map onto plain (non-JSON) columns
SCALAR_COLUMNS = frozenset({"id", "slug", "type", "version", "name", "active"})

LINK_TYPE = "link@1.0.0"


def row_to_card(row: sqlite3.Row) -> dict[str, Any]:
    """Convert a cards table row into a card dict."""
    card = {}
    for column in COLUMNS:
        value = row[column]
        if column in JSON_COLUMNS:
            value = json.loads(value) if value is not None else None
        elif column == "active":
            value = bool(value)
        card[column] = value

    if card["name"] is None:
        del card["name"]

    return card


def card_to_row(card: dict[str, Any]) -> dict[str, Any]:
    """Convert a card dict into column values for the cards table."""
    row = {}
    for column in COLUMNS:
        if column not in card:
            continue
        value = card[column]
        if column in JSON_COLUMNS:
            value = json.dumps(value)
        elif column == "active":
            value = 1 if value else 0
        row[column] = value
    return row


class CardOperations:
    """Card table operations."""

    def __init__(self, conn: sqlite3.Connection):
        """Initialize card operations with a database connection.

        Args:
            conn: SQLite connection with row_factory set to sqlite3.Row
        """
        self._conn = conn

    def _fetch(self, builder: QueryBuilder, order: str = "created_at ASC") -> list[dict[str, Any]]:
        query_sql = f"{builder.format_as_sql()} ORDER BY {order}"
        rows = self._conn.execute(query_sql, builder.parameters()).fetchall()
        return [row_to_card(row) for row in rows]

    def get_by_id(self, card_id: str) -> dict[str, Any] | None:
        """Get a card by id, or None if it does not exist."""
        results = self.find({"id": card_id})
        return results[0] if results else None

    def get_by_slug(self, slug: str, version: str | None = None) -> list[dict[str, Any]]:
        """Get every version of a slug, or only the given version."""
        filters = {"slug": slug}
        if version is not None:
            filters["version"] = version
        return self.find(filters)

    def find(
        self,
        filters: dict[str, Any],
        data_filters: dict[tuple[str, ...], Any] | None = None
    ) -> list[dict[str, Any]]:
        """Find cards by exact column values and exact JSON values.

        Args:
            filters: Scalar column names (id, slug, type, version, name, active)
                mapped to the value they must equal
            data_filters: Paths into the JSON columns, e.g. ("data", "actor"),
                mapped to the value found there

        Returns:
            Matching cards ordered by creation time
        """
        builder = QueryBuilder()
        builder.field("*")
        builder.table("cards").from_()

        predicates = 0
        for column, value in filters.items():
            if column not in SCALAR_COLUMNS:
                raise ValueError(f"Cannot filter on column: {column}")
            builder.field(column).constant(1 if value is True else 0 if value is False else value).eq()
            predicates += 1
            if predicates > 1:
                builder.and_()

        for path, value in (data_filters or {}).items():
            column, *keys = path
            if column not in JSON_COLUMNS:
                raise ValueError(f"Cannot filter on JSON column: {column}")
            builder.field(column).json_path(keys).constant(value).eq()
            predicates += 1
            if predicates > 1:
                builder.and_()

        if predicates:
            builder.where()
        builder.select()

        return self._fetch(builder)

    def linked(self, card_id: str, verb: str) -> list[dict[str, Any]]:
        """Get every card linked to card_id through an active link named verb.

        Both directions are followed: links whose name is the verb and whose
        source is the card, and links whose inverse name is the verb and
        whose target is the card.
        """
        results = {}
        for name_column, near, far in (
            ("name", "from", "to"),
            (None, "to", "from"),
        ):
            builder = QueryBuilder()
            builder.field_from("c", "*")
            builder.table("cards").as_("c")
            builder.table("cards").as_("l")
            builder.field_from("c", "id").field_from("l", "data").json_path([far, "id"]).eq()
            builder.join()
            builder.from_(2)

            builder.field_from("l", "type").constant(LINK_TYPE).eq()
            builder.field_from("l", "active").constant(1).eq().and_()
            if name_column:
                builder.field_from("l", "name").constant(verb).eq().and_()
            else:
                builder.field_from("l", "data").json_path("inverseName").constant(verb).eq().and_()
            builder.field_from("l", "data").json_path([near, "id"]).constant(card_id).eq().and_()
            builder.where()
            builder.select()

            for card in self._fetch(builder, order="c.created_at ASC"):
                results.setdefault(card["id"], card)

        return list(results.values())

    def insert(self, card: dict[str, Any]) -> dict[str, Any]:
        """Insert a new card, generating its id when missing.

        Raises:
            ElementAlreadyExists: If the id or the slug/version pair is taken
        """
        card = dict(card)
        card.setdefault("id", uid.generate_uuid())
        card.setdefault("created_at", isodatetime.now())

        row = card_to_row(card)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)

        try:
            self._conn.execute(
                f"INSERT INTO cards ({columns}) VALUES ({placeholders})",
                list(row.values())
            )
        except sqlite3.IntegrityError as e:
            raise ElementAlreadyExists(
                f"There is already a card with slug '{card.get('slug')}' "
                f"at version {card.get('version')}",
                {"slug": card.get("slug"), "version": card.get("version")}
            ) from e

        return self.get_by_id(card["id"])

    def update(self, card_id: str, card: dict[str, Any]) -> dict[str, Any]:
        """Replace the stored fields of an existing card.

        The id and created_at columns are never rewritten and updated_at
        always moves. A card without a name clears the stored one.
        """
        row = card_to_row(card)
        row.setdefault("name", None)
        row["updated_at"] = isodatetime.now()

        update_clause, params = build_update_clause(
            row, exclude={"id", "created_at"}, skip_none=False
        )
        params.append(card_id)

        cursor = self._conn.execute(
            f"UPDATE cards SET {update_clause} WHERE id = ?",
            params
        )
        if cursor.rowcount != 1:
            raise DatabaseError(
                f"Card '{card_id}' could not be updated",
                {"card_id": card_id}
            )

        return self.get_by_id(card_id)

    def upsert(self, card: dict[str, Any]) -> dict[str, Any]:
        """Update the card matching the id (or slug and version), else insert it."""
        existing = None
        if card.get("id"):
            existing = self.get_by_id(card["id"])
        if existing is None and card.get("slug"):
            matches = self.get_by_slug(card["slug"], card.get("version", "1.0.0"))
            existing = matches[0] if matches else None

        if existing is None:
            return self.insert(card)

        return self.update(existing["id"], {**card, "id": existing["id"]})

    def stamp_linked_at(self, card_id: str, verb: str, timestamp: str) -> None:
        """Record when a card last got a link named verb."""
        self._conn.execute(
            "UPDATE cards SET linked_at = json_set(linked_at, ?, ?) WHERE id = ?",
            (f'$."{verb}"', timestamp, card_id)
        )
