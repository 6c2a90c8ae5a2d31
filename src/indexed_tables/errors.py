"""Error types raised by the query engine."""

from __future__ import annotations


class IndexedTablesError(Exception):
    """Base class for indexed_tables failures."""


class IllegalStateError(IndexedTablesError, RuntimeError):
    """Raised when a retrieval runs on a query that already holds data."""


class UnknownIndexError(IndexedTablesError, KeyError):
    """Raised when a query names a secondary index the collection lacks."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown index: {self.name}"
