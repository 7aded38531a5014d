"""Utility functions for Jellyfish Core.

This package provides centralized utilities for common operations.
Import convention: use module-level imports for clarity.

    from utils import isodatetime, uid, semver
    timestamp = isodatetime.now()
    card_id = uid.generate_uuid()
    version = semver.parse("1.2.3")
"""

from . import isodatetime, semver, uid

__all__ = ["isodatetime", "semver", "uid"]
