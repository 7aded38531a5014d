"""Domain string types.

These are str subclasses so they serialize to JSON and bind to SQLite
parameters unchanged, while carrying conversion helpers.
"""

from datetime import datetime

from ..utils import isodatetime, semver


class Timestamp(str):
    """ISO 8601 UTC timestamp string (e.g. "2026-10-19T10:30:45Z")."""

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Timestamp":
        return cls(isodatetime.to_timestamp(dt))

    @classmethod
    def now(cls) -> "Timestamp":
        return cls(isodatetime.now())

    def to_datetime(self) -> datetime:
        return isodatetime.to_datetime(self)


class CardReference(str):
    """Versioned card reference string ("slug@1.0.0" or plain "slug")."""

    @classmethod
    def build(cls, slug: str, version: str) -> "CardReference":
        return cls(f"{slug}@{version}")

    @classmethod
    def of(cls, card: dict) -> "CardReference":
        """Reference to an existing card (its slug at its version)."""
        return cls.build(card["slug"], card["version"])

    @property
    def slug(self) -> str:
        return semver.base_slug(self)

    @property
    def version(self) -> str | None:
        return semver.parse_reference(self).version
