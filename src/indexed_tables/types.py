"""Type definitions for the indexed_tables query engine."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# Top-level query keys that are not shorthand equality clauses
RESERVED_KEYS: frozenset[str] = frozenset({"skip", "offset", "where", "limit", "orderBy", "sort"})

# Prefix marking a clause that ORs with the running result
OR_PREFIX = "|"


class Direction(Enum):
    """Sort direction for one key of an order specification."""

    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Any) -> Direction:
        """Return DESC for 'DESC' (any case), ASC for anything else."""
        if isinstance(value, Direction):
            return value
        if isinstance(value, str) and value.upper() == "DESC":
            return cls.DESC
        return cls.ASC


class OperatorKind(Enum):
    """The closed set of binary predicates a clause can apply."""

    EQ = "=="
    STRICT_EQ = "==="
    NE = "!="
    STRICT_NE = "!=="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    ISECT_EMPTY = "isectEmpty"
    ISECT_NOT_EMPTY = "isectNotEmpty"
    IN = "in"
    NOT_IN = "notIn"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    LIKE = "like"
    NOT_LIKE = "notLike"

    @property
    def is_pattern(self) -> bool:
        """Return whether this kind takes a LIKE pattern and regex flags."""
        return self in (OperatorKind.LIKE, OperatorKind.NOT_LIKE)


# Mapping from operator names to kinds, excluding the pattern family
OPERATOR_NAMES: dict[str, OperatorKind] = {
    kind.value: kind for kind in OperatorKind if not kind.is_pattern
}


@dataclass(frozen=True)
class Operator:
    """A resolved operator: its kind plus compiled regex flags for LIKE."""

    kind: OperatorKind
    flags: int = 0


@dataclass
class Clause:
    """One normalized predicate of a filter.

    operator is None when the name did not resolve; such a clause never
    constrains the result.
    """

    field: str
    path: tuple[str, ...]
    name: str
    operator: Operator | None
    value: Any
    is_or: bool = False
    pattern: re.Pattern[str] | None = None


@dataclass(frozen=True)
class SortKey:
    """One (field, direction) pair of an order specification."""

    field: str
    direction: Direction = Direction.ASC


@dataclass
class QueryOptions:
    """Options accepted by the retrieval operations."""

    index: str | None = None
    left_inclusive: bool = True
    right_inclusive: bool = False
    offset: int | None = None
    limit: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    # camelCase spellings accepted alongside the snake_case field names
    _ALIASES = {
        "leftInclusive": "left_inclusive",
        "rightInclusive": "right_inclusive",
    }

    @classmethod
    def from_mapping(cls, opts: Mapping[str, Any] | None = None, **kwargs: Any) -> QueryOptions:
        """Build options from a mapping and/or keyword arguments.

        Keyword arguments override mapping entries. Unknown names are kept
        in `extra`.
        """
        merged: dict[str, Any] = {}
        for source in (opts or {}, kwargs):
            for key, value in source.items():
                merged[cls._ALIASES.get(key, key)] = value

        known = {"index", "left_inclusive", "right_inclusive", "offset", "limit"}
        result = cls(extra={k: v for k, v in merged.items() if k not in known})
        if merged.get("index"):
            result.index = merged["index"]
        if merged.get("left_inclusive") is not None:
            result.left_inclusive = bool(merged["left_inclusive"])
        if merged.get("right_inclusive") is not None:
            result.right_inclusive = bool(merged["right_inclusive"])
        result.offset = merged.get("offset")
        result.limit = merged.get("limit")
        return result
