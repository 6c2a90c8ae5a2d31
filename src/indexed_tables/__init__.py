"""Indexed Tables - Query evaluation over an in-memory, indexed record store."""

from indexed_tables.collection import Collection
from indexed_tables.errors import IllegalStateError, IndexedTablesError, UnknownIndexError
from indexed_tables.index import Index
from indexed_tables.parsing import QueryParser
from indexed_tables.query import Query, QueryState
from indexed_tables.query_executor import QueryExecutor, QueryResult
from indexed_tables.types import (
    Clause,
    Direction,
    Operator,
    OperatorKind,
    QueryOptions,
    SortKey,
)

__all__ = [
    # Main API
    "Collection",
    "Query",
    "QueryState",
    "Index",
    # Query language
    "QueryParser",
    "QueryExecutor",
    "QueryResult",
    # Types
    "Clause",
    "Direction",
    "Operator",
    "OperatorKind",
    "QueryOptions",
    "SortKey",
    # Errors
    "IndexedTablesError",
    "IllegalStateError",
    "UnknownIndexError",
]

__version__ = "0.1.0"
