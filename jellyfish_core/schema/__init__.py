"""Schema module for Jellyfish Core.

This module provides the database schema (schema.sql) and the small domain
string types shared by the storage and kernel layers.
"""

from . import types

__all__ = ["types"]
