"""Small helpers shared by the index, collection and query modules."""

from __future__ import annotations

import math
from collections.abc import Mapping
from numbers import Real
from typing import Any


def split_path(path: str) -> tuple[str, ...]:
    """Split a dotted field path like 'address.state' into segments."""
    if not path:
        return ()
    return tuple(path.split("."))


def get_path(record: Any, path: str | tuple[str, ...]) -> Any:
    """Resolve a dotted field path against a record.

    Mappings are looked up by key, lists and tuples by integer segment and
    anything else by attribute. A missing segment yields None.
    """
    segments = split_path(path) if isinstance(path, str) else path
    if not segments:
        return None
    value = record
    for segment in segments:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(segment)
        elif isinstance(value, (list, tuple)):
            try:
                value = value[int(segment)]
            except (ValueError, IndexError):
                return None
        else:
            value = getattr(value, segment, None)
    return value


def is_number(value: Any) -> bool:
    """Return whether value is a real number (bools excluded)."""
    return isinstance(value, Real) and not isinstance(value, bool)


def to_key_list(keys: Any) -> list[Any]:
    """Coerce a composite key argument to a list; scalars become [scalar]."""
    if keys is None:
        return []
    if isinstance(keys, (list, tuple)):
        return list(keys)
    return [keys]


def clamp_count(num: Real, length: int) -> int:
    """Convert a skip/limit count to a slice bound within [-length, length]."""
    if isinstance(num, float):
        if math.isnan(num):
            return 0
        if math.isinf(num):
            return length if num > 0 else -length
    return max(-length, min(length, int(num)))
