"""Jellyfish Core: a card platform with REST and GraphQL endpoints."""

__version__ = "0.1.0"
