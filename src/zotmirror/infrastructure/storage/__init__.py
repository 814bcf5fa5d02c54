"""Relational storage."""

from .sqlite import LibraryStorage

__all__ = ["LibraryStorage"]
