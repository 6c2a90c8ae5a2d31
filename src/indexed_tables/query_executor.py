"""Query executor for ITQ statements."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from indexed_tables.collection import Collection
from indexed_tables.errors import UnknownIndexError
from indexed_tables.parsing.query_parser import SelectStatement
from indexed_tables.query import Query

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Result of a query execution."""

    columns: list[str]
    rows: list[dict[str, Any]]
    message: str | None = None


def _as_row(record: Any) -> dict[str, Any]:
    if isinstance(record, Mapping):
        return dict(record)
    if hasattr(record, "__dict__"):
        return dict(vars(record))
    return {"value": record}


def _collect_columns(rows: list[dict[str, Any]]) -> list[str]:
    """Union of row keys in first-seen order."""
    columns: dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(key, None)
    return list(columns)


class QueryExecutor:
    """Executes ITQ statements against a collection."""

    def __init__(self, collection: Collection) -> None:
        self.collection = collection

    def _retrieve(self, statement: SelectStatement) -> Query:
        retrieval = statement.retrieval
        opts = retrieval.options()
        query = self.collection.query()
        if retrieval.kind == "get":
            query.get(retrieval.keys[0], opts)
        elif retrieval.kind == "get_all":
            query.get_all(*retrieval.keys, opts)
        elif retrieval.kind == "between":
            query.between(retrieval.keys[0], retrieval.keys[1], opts)
        return query

    def execute(self, statement: SelectStatement) -> QueryResult:
        """Execute a statement and return its rows."""
        try:
            query = self._retrieve(statement)
        except UnknownIndexError as e:
            return QueryResult(columns=[], rows=[], message=str(e))

        filter_query = statement.filter_query()
        logger.debug("Executing %s retrieval with filter %r", statement.retrieval.kind, filter_query)
        records = query.filter(filter_query).run() or []

        rows = [_as_row(record) for record in records]
        return QueryResult(columns=_collect_columns(rows), rows=rows)
