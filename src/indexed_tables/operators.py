"""Filter operators: name resolution, LIKE patterns and evaluation."""

from __future__ import annotations

import re
from typing import Any

from indexed_tables.types import OPERATOR_NAMES, Operator, OperatorKind
from indexed_tables.utils import is_number

# Regex flag letters accepted after like/notLike
_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    # Global, unicode and sticky matching have no meaning for a full match
    "g": 0,
    "u": 0,
    "y": 0,
}


def _parse_flags(suffix: str) -> int | None:
    """Translate a flag suffix like 'i' into re flags; None if invalid."""
    flags = 0
    seen: set[str] = set()
    for letter in suffix:
        if letter not in _FLAG_MAP or letter in seen:
            return None
        seen.add(letter)
        flags |= _FLAG_MAP[letter]
    return flags


def resolve_operator(name: str) -> Operator | None:
    """Resolve an operator name (without any '|' prefix).

    Returns None for names outside the supported set, including a
    like/notLike suffix that is not a valid flag string.
    """
    kind = OPERATOR_NAMES.get(name)
    if kind is not None:
        return Operator(kind)
    if name.startswith("like"):
        flags = _parse_flags(name[4:])
        return Operator(OperatorKind.LIKE, flags) if flags is not None else None
    if name.startswith("notLike"):
        flags = _parse_flags(name[7:])
        return Operator(OperatorKind.NOT_LIKE, flags) if flags is not None else None
    return None


def like_pattern(pattern: Any, flags: int = 0) -> re.Pattern[str]:
    """Compile a SQL LIKE pattern: % is any run, _ is any single character.

    With re.MULTILINE the pattern is anchored at line boundaries, so a single
    line of the value may match; otherwise the whole value must match.
    """
    parts = []
    for ch in str(pattern):
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    body = "".join(parts)
    if flags & re.MULTILINE:
        body = f"^(?:{body})$"
    return re.compile(body, flags)


def _loose_equals(value: Any, predicate: Any) -> bool:
    """Equality that lets a numeric string equal the number it spells."""
    if value == predicate:
        return True
    if isinstance(value, str) and is_number(predicate):
        value, predicate = predicate, value
    if is_number(value) and isinstance(predicate, str):
        try:
            return value == float(predicate)
        except ValueError:
            return False
    return False


def _strict_equals(value: Any, predicate: Any) -> bool:
    """Equality that also requires both sides to be the same kind of value."""
    if is_number(value) and is_number(predicate):
        return value == predicate
    return type(value) is type(predicate) and value == predicate


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _intersects(value: Any, predicate: Any) -> bool:
    others = _as_list(predicate)
    return any(item in others for item in _as_list(value))


def _member(needle: Any, haystack: Any) -> bool:
    try:
        return needle in haystack
    except TypeError:
        return False


def _order(value: Any, predicate: Any, kind: OperatorKind) -> bool:
    try:
        if kind is OperatorKind.GT:
            return value > predicate
        elif kind is OperatorKind.GTE:
            return value >= predicate
        elif kind is OperatorKind.LT:
            return value < predicate
        else:
            return value <= predicate
    except TypeError:
        return False


def _matches(value: Any, pattern: re.Pattern[str]) -> bool:
    if value is None:
        return False
    text = value if isinstance(value, str) else str(value)
    if pattern.flags & re.MULTILINE:
        return pattern.search(text) is not None
    return pattern.fullmatch(text) is not None


def evaluate(
    value: Any,
    operator: Operator | None,
    predicate: Any,
    pattern: re.Pattern[str] | None = None,
) -> bool | None:
    """Apply an operator to a record value and a predicate.

    Returns None when there is no operator, meaning "no constraint".
    LIKE operators use the precompiled pattern when given.
    """
    if operator is None:
        return None
    kind = operator.kind

    if kind is OperatorKind.EQ:
        return _loose_equals(value, predicate)
    elif kind is OperatorKind.STRICT_EQ:
        return _strict_equals(value, predicate)
    elif kind is OperatorKind.NE:
        return not _loose_equals(value, predicate)
    elif kind is OperatorKind.STRICT_NE:
        return not _strict_equals(value, predicate)
    elif kind in (OperatorKind.GT, OperatorKind.GTE, OperatorKind.LT, OperatorKind.LTE):
        return _order(value, predicate, kind)
    elif kind is OperatorKind.ISECT_EMPTY:
        return not _intersects(value, predicate)
    elif kind is OperatorKind.ISECT_NOT_EMPTY:
        return _intersects(value, predicate)
    elif kind is OperatorKind.IN:
        return _member(value, predicate)
    elif kind is OperatorKind.NOT_IN:
        return not _member(value, predicate)
    elif kind is OperatorKind.CONTAINS:
        return _member(predicate, value)
    elif kind is OperatorKind.NOT_CONTAINS:
        return not _member(predicate, value)

    if pattern is None:
        pattern = like_pattern(predicate, operator.flags)
    if kind is OperatorKind.LIKE:
        return _matches(value, pattern)
    return not _matches(value, pattern)
