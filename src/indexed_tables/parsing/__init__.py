"""Parsing module for the ITQ query language."""

from indexed_tables.parsing.query_parser import (
    Condition,
    QueryParser,
    Retrieval,
    SelectStatement,
)

__all__ = [
    "Condition",
    "QueryParser",
    "Retrieval",
    "SelectStatement",
]
