"""Query builder evaluated against a collection's indexes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from functools import cmp_to_key, partial
from typing import TYPE_CHECKING, Any

from indexed_tables.errors import IllegalStateError, UnknownIndexError
from indexed_tables.index import Index
from indexed_tables.operators import evaluate, like_pattern, resolve_operator
from indexed_tables.types import (
    OR_PREFIX,
    RESERVED_KEYS,
    Clause,
    Direction,
    QueryOptions,
    SortKey,
)
from indexed_tables.utils import clamp_count, get_path, is_number, split_path, to_key_list

if TYPE_CHECKING:
    from indexed_tables.collection import Collection

logger = logging.getLogger(__name__)


class QueryState(Enum):
    """Whether a query has retrieved its data yet."""

    EMPTY = "empty"
    POPULATED = "populated"


def build_clauses(where: Mapping[str, Any]) -> list[Clause]:
    """Flatten a where mapping into clauses, in declaration order.

    A field whose value is not an operator mapping is an implicit '=='.
    """
    clauses = []
    for field_name, clause in where.items():
        field_name = str(field_name)
        if not isinstance(clause, Mapping):
            clause = {"==": clause}
        for name, value in clause.items():
            name = str(name)
            is_or = name.startswith(OR_PREFIX)
            if is_or:
                name = name[len(OR_PREFIX):]
            operator = resolve_operator(name)
            pattern = None
            if operator is not None and operator.kind.is_pattern:
                pattern = like_pattern(value, operator.flags)
            clauses.append(
                Clause(
                    field=field_name,
                    path=split_path(field_name),
                    name=name,
                    operator=operator,
                    value=value,
                    is_or=is_or,
                    pattern=pattern,
                )
            )
    return clauses


def matches_clauses(record: Any, clauses: list[Clause]) -> bool:
    """Fold the clauses over a record strictly left to right."""
    keep = True
    first = True
    for clause in clauses:
        expr = evaluate(get_path(record, clause.path), clause.operator, clause.value, clause.pattern)
        if expr is not None:
            if first:
                keep = expr
            elif clause.is_or:
                keep = keep or expr
            else:
                keep = keep and expr
        first = False
    return keep


def normalize_order(order_by: Any) -> list[SortKey]:
    """Normalize 'name', ['a', ['b', 'DESC']] and the like to sort keys."""
    if isinstance(order_by, str):
        order_by = [[order_by, Direction.ASC]]
    if not isinstance(order_by, (list, tuple)):
        return []

    keys = []
    for definition in order_by:
        if isinstance(definition, SortKey):
            keys.append(definition)
        elif isinstance(definition, str):
            keys.append(SortKey(definition))
        elif isinstance(definition, (list, tuple)) and definition:
            direction = definition[1] if len(definition) > 1 else None
            keys.append(SortKey(str(definition[0]), Direction.parse(direction)))
    return keys


def _fold_case(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def _cmp(a: Any, b: Any) -> int:
    try:
        if a < b:
            return -1
        if a > b:
            return 1
    except TypeError:
        # Values that cannot be ordered (e.g. None against a number) tie
        pass
    return 0


def compare(order: list[SortKey], a: Any, b: Any) -> int:
    """Compare two records by each sort key in turn; 0 if all tie."""
    for key in order:
        result = _cmp(_fold_case(get_path(a, key.field)), _fold_case(get_path(b, key.field)))
        if key.direction is Direction.DESC:
            result = -result
        if result:
            return result
    return 0


def _bind(fn: Callable[..., Any], this_arg: Any) -> Callable[..., Any]:
    """Bind a context as the callable's first argument when one is given."""
    return fn if this_arg is None else partial(fn, this_arg)


class Query:
    """A chainable query over one collection.

    At most one retrieval (get, get_all, between, or the implicit full scan
    of get_data) populates the query; filter, skip, limit, for_each and map
    then work on the retrieved records, and run() returns them and resets
    the query for reuse.

    Example:
        >>> adults = collection.query().between(18, 30, index="age").run()
    """

    def __init__(self, collection: Collection) -> None:
        self.collection = collection
        self.state = QueryState.EMPTY
        self._records: list[Any] = []

    @property
    def data(self) -> list[Any] | None:
        """The retrieved records, or None before any retrieval."""
        if self.state is QueryState.POPULATED:
            return self._records
        return None

    def _populate(self, records: list[Any]) -> None:
        self._records = list(records)
        self.state = QueryState.POPULATED

    def _check_empty(self) -> None:
        if self.state is QueryState.POPULATED:
            raise IllegalStateError("Cannot access index after first operation!")

    def _select_index(self, opts: QueryOptions) -> Index:
        if not opts.index:
            return self.collection.index
        try:
            return self.collection.indexes[opts.index]
        except KeyError:
            raise UnknownIndexError(opts.index) from None

    # --- Retrieval ---

    def get_data(self) -> list[Any]:
        """Return the current records, scanning the primary index if empty."""
        if self.state is QueryState.EMPTY:
            self._populate(self.collection.index.get_all())
            logger.debug("Full scan retrieved %d record(s)", len(self._records))
        return self._records

    def get(self, key_list: Any = None, opts: Mapping[str, Any] | None = None, **kwargs: Any) -> Query:
        """Retrieve the records matching a composite key.

        Args:
            key_list: Key values in index field order. A scalar is treated
                as a single-value key; None or [] retrieves everything.
            opts: Options mapping; `index` names a secondary index.
            **kwargs: Options given as keywords.

        Returns:
            The query, for chaining.
        """
        self._check_empty()
        keys = to_key_list(key_list)
        if not keys:
            self.get_data()
            return self

        options = QueryOptions.from_mapping(opts, **kwargs)
        index = self._select_index(options)
        self._populate(index.get(keys))
        logger.debug("get(%r) on index %r retrieved %d record(s)", keys, options.index, len(self._records))
        return self

    def get_all(self, *key_lists: Any, **kwargs: Any) -> Query:
        """Retrieve the records matching any of several keys.

        A trailing mapping argument is taken as the options. The result is
        the concatenation of each key's matches, in argument order, with
        duplicates kept. Without keys everything is retrieved.
        """
        self._check_empty()
        args = list(key_lists)
        opts: Mapping[str, Any] | None = None
        if args and isinstance(args[-1], Mapping):
            opts = args.pop()
        if not args:
            self.get_data()
            return self

        options = QueryOptions.from_mapping(opts, **kwargs)
        index = self._select_index(options)
        records: list[Any] = []
        for key_list in args:
            records.extend(index.get(key_list))
        self._populate(records)
        logger.debug(
            "get_all over %d key(s) on index %r retrieved %d record(s)",
            len(args), options.index, len(records),
        )
        return self

    def between(
        self,
        left_keys: Any,
        right_keys: Any,
        opts: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Query:
        """Retrieve the records between two key boundaries.

        Args:
            left_keys: Left boundary key (scalar or list).
            right_keys: Right boundary key (scalar or list).
            opts: Options mapping: `index`, `left_inclusive` (default True),
                `right_inclusive` (default False), `offset`, `limit`.
            **kwargs: Options given as keywords.

        Returns:
            The query, for chaining.
        """
        self._check_empty()
        options = QueryOptions.from_mapping(opts, **kwargs)
        index = self._select_index(options)
        self._populate(index.between(to_key_list(left_keys), to_key_list(right_keys), options))
        logger.debug(
            "between(%r, %r) on index %r retrieved %d record(s)",
            left_keys, right_keys, options.index, len(self._records),
        )
        return self

    # --- Transformation ---

    def filter(self, query_or_fn: Mapping[str, Any] | Callable[..., Any] | None = None, this_arg: Any = None) -> Query:
        """Keep the records matching a query mapping or a predicate function.

        A query mapping may hold `where` clauses ({field: {op: value}}),
        shorthand equality keys, `orderBy`/`sort`, `skip`/`offset` and
        `limit`. Clauses combine left to right with AND, or with OR when the
        operator is written with a leading '|'.

        Example:
            >>> query.filter({"where": {"status": {"==": "draft"}, "priority": {"|==": "high"}}})
        """
        if query_or_fn is None:
            query_or_fn = {}
        self.get_data()

        if isinstance(query_or_fn, Mapping):
            self._apply_query(query_or_fn)
        elif callable(query_or_fn):
            fn = _bind(query_or_fn, this_arg)
            self._records = [record for record in self._records if fn(record)]
        else:
            raise TypeError(
                f"filter: Expected mapping or callable but found {type(query_or_fn).__name__}!"
            )
        return self

    def _apply_query(self, query: Mapping[str, Any]) -> None:
        where: dict[str, Any] = {}
        if isinstance(query.get("where"), Mapping):
            where = dict(query["where"])
        for key, value in query.items():
            if key not in RESERVED_KEYS and key not in where:
                where[key] = {"==": value}

        clauses = build_clauses(where)
        if clauses:
            self._records = [record for record in self._records if matches_clauses(record, clauses)]
            logger.debug("Filtered by %d clause(s): %d record(s) kept", len(clauses), len(self._records))

        order = normalize_order(query.get("orderBy") or query.get("sort"))
        if order:
            self._records.sort(key=cmp_to_key(partial(compare, order)))

        if is_number(query.get("skip")):
            self.skip(query["skip"])
        elif is_number(query.get("offset")):
            self.skip(query["offset"])
        if is_number(query.get("limit")):
            self.limit(query["limit"])

    def skip(self, num: Any) -> Query:
        """Drop the first num records."""
        if not is_number(num):
            raise TypeError(f"skip: Expected number but found {type(num).__name__}!")
        data = self.get_data()
        self._records = data[clamp_count(num, len(data)):]
        return self

    def limit(self, num: Any) -> Query:
        """Keep at most the first num records."""
        if not is_number(num):
            raise TypeError(f"limit: Expected number but found {type(num).__name__}!")
        data = self.get_data()
        self._records = data[: clamp_count(num, len(data))]
        return self

    def for_each(self, fn: Callable[..., Any], this_arg: Any = None) -> Query:
        """Call fn on every record for its side effects."""
        fn = _bind(fn, this_arg)
        for record in self.get_data():
            fn(record)
        return self

    def map(self, fn: Callable[..., Any], this_arg: Any = None) -> Query:
        """Replace every record with fn(record)."""
        fn = _bind(fn, this_arg)
        self._records = [fn(record) for record in self.get_data()]
        return self

    def run(self) -> list[Any] | None:
        """Return the result and reset the query so it can be reused."""
        data = self.data
        self._records = []
        self.state = QueryState.EMPTY
        return data
