"""Combinators - sequential collection operations over possibly-async steps."""

from .ops import for_each, map, map_values

__all__ = ["for_each", "map", "map_values"]
