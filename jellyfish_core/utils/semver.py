"""Semantic version and versioned-slug helpers.

Cards are addressed either by plain slug ("contact"), by an exact
versioned reference ("contact@1.0.0") or by "contact@latest".
"""

import re
from typing import NamedTuple

SEMVER_PATTERN = (
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

_SEMVER_RE = re.compile(SEMVER_PATTERN)

LATEST = "latest"


class Version(NamedTuple):
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def sort_key(self) -> tuple:
        # A release sorts after any of its pre-releases
        return (self.major, self.minor, self.patch, self.prerelease is None, self.prerelease or "")


class SlugReference(NamedTuple):
    slug: str
    version: str | None

    def __str__(self) -> str:
        return f"{self.slug}@{self.version}" if self.version else self.slug


def is_valid(value: object) -> bool:
    """Check whether a value is a semantic version string."""
    return isinstance(value, str) and _SEMVER_RE.match(value) is not None


def parse(value: str) -> Version:
    """Parse a semantic version string.

    Raises:
        ValueError: If the value is not a semantic version
    """
    match = _SEMVER_RE.match(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid semantic version: {value!r}")
    major, minor, patch, prerelease, build = match.groups()
    return Version(int(major), int(minor), int(patch), prerelease, build)


def parse_reference(reference: str) -> SlugReference:
    """Split "slug@version" into its parts.

    The version is None when absent or when it is "latest".
    """
    slug, _, version = reference.partition("@")
    if not version or version == LATEST:
        return SlugReference(slug, None)
    parse(version)
    return SlugReference(slug, version)


def base_slug(reference: str) -> str:
    """Return the slug part of a versioned reference."""
    return reference.partition("@")[0]


def latest(cards: list[dict]) -> dict | None:
    """Pick the card with the highest version from a list of cards."""
    if not cards:
        return None
    return max(cards, key=lambda card: parse(card["version"]).sort_key())
