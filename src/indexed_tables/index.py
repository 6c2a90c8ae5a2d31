"""Sorted in-memory index over composite keys."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Mapping
from typing import Any

from indexed_tables.types import QueryOptions
from indexed_tables.utils import clamp_count, get_path, is_number, split_path, to_key_list


def key_part(value: Any) -> tuple:
    """Make one key component totally ordered.

    None sorts first, then numbers (bools included), then everything else
    by its string form.
    """
    if value is None:
        return (0, 0)
    if is_number(value) or isinstance(value, bool):
        return (1, value)
    return (2, str(value))


def make_key(values: Any) -> tuple:
    """Convert a composite key (or a scalar) to its ordered form."""
    return tuple(key_part(v) for v in to_key_list(values))


class Index:
    """An ordered structure keyed by one or more (possibly dotted) fields.

    Records with equal keys are kept in id order, then insertion order.
    Lookups with a key shorter than the field list match on the prefix.
    """

    def __init__(self, fields: list[str] | str, id_attribute: str = "id") -> None:
        """Initialize an empty index.

        Args:
            fields: Field name(s) forming the composite key, in order.
            id_attribute: Field used to order records whose keys tie.
        """
        self.fields = to_key_list(fields)
        if not self.fields:
            raise ValueError("An index needs at least one field")
        self.id_attribute = id_attribute
        self._paths = [split_path(f) for f in self.fields]
        self._id_path = split_path(id_attribute)
        # Sorted (key, id_part, seq) entries with records in a parallel list
        self._entries: list[tuple[tuple, tuple, int]] = []
        self._records: list[Any] = []
        self._seq = 0

    def __len__(self) -> int:
        return len(self._records)

    def key_of(self, record: Any) -> list[Any]:
        """Return the composite key values of a record."""
        return [get_path(record, path) for path in self._paths]

    def insert(self, record: Any) -> None:
        """Insert a record at its sorted position."""
        entry = (
            make_key(self.key_of(record)),
            key_part(get_path(record, self._id_path)),
            self._seq,
        )
        self._seq += 1
        pos = bisect_right(self._entries, entry)
        self._entries.insert(pos, entry)
        self._records.insert(pos, record)

    def get_all(self) -> list[Any]:
        """Return every record in index order."""
        return list(self._records)

    def _bound(self, key: tuple, upper: bool) -> int:
        """Position of the first entry whose key prefix is >= key (> if upper)."""
        n = len(key)
        find = bisect_right if upper else bisect_left
        return find(self._entries, key, key=lambda entry: entry[0][:n])

    def get(self, key_list: Any) -> list[Any]:
        """Return the records whose key equals (or starts with) key_list."""
        key = make_key(key_list)
        start = self._bound(key, upper=False)
        end = self._bound(key, upper=True)
        return self._records[start:end]

    def between(
        self,
        left_keys: Any,
        right_keys: Any,
        opts: QueryOptions | Mapping[str, Any] | None = None,
    ) -> list[Any]:
        """Return the records between two key boundaries, in index order.

        The left boundary is inclusive and the right exclusive unless the
        options say otherwise; offset and limit apply to the range.
        """
        if not isinstance(opts, QueryOptions):
            opts = QueryOptions.from_mapping(opts)

        start = self._bound(make_key(left_keys), upper=not opts.left_inclusive)
        end = self._bound(make_key(right_keys), upper=opts.right_inclusive)
        if start >= end:
            return []

        records = self._records[start:end]
        # Non-numeric offset and limit are ignored
        if is_number(opts.offset):
            records = records[clamp_count(opts.offset, len(records)):]
        if is_number(opts.limit):
            records = records[: clamp_count(opts.limit, len(records))]
        return records
