"""A collection of records with a primary index and named secondary indexes."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from indexed_tables.index import Index

if TYPE_CHECKING:
    from indexed_tables.query import Query

logger = logging.getLogger(__name__)


class Collection:
    """Holds records and the indexes queries are answered from."""

    def __init__(
        self,
        records: Iterable[Any] | None = None,
        id_attribute: str = "id",
        index_fields: list[str] | None = None,
    ) -> None:
        """Initialize the collection.

        Args:
            records: Initial records to load.
            id_attribute: Field identifying a record; keys the primary index
                unless index_fields is given.
            index_fields: Fields of the primary index's composite key.
        """
        self.id_attribute = id_attribute
        self.index = Index(index_fields or [id_attribute], id_attribute=id_attribute)
        self.indexes: dict[str, Index] = {}
        if records is not None:
            self.add(records)

    def __len__(self) -> int:
        return len(self.index)

    def add(self, records: Iterable[Any]) -> Collection:
        """Load records into the primary and every secondary index."""
        count = 0
        for record in records:
            self.index.insert(record)
            for index in self.indexes.values():
                index.insert(record)
            count += 1
        logger.debug("Loaded %d record(s); collection now holds %d", count, len(self))
        return self

    def create_index(self, name: str, fields: list[str] | str | None = None) -> Collection:
        """Build a secondary index over the current records.

        Args:
            name: Name used to select the index in queries.
            fields: Key field(s); defaults to [name].

        Returns:
            The collection, for chaining.
        """
        index = Index(fields if fields is not None else [name], id_attribute=self.id_attribute)
        for record in self.index.get_all():
            index.insert(record)
        self.indexes[name] = index
        logger.debug("Created index %r on %s", name, index.fields)
        return self

    def query(self) -> Query:
        """Return a new query bound to this collection."""
        from indexed_tables.query import Query

        return Query(self)

    def get(self, key_list: Any = None, opts: dict[str, Any] | None = None, **kwargs: Any) -> list[Any]:
        """Run get() as a one-shot query."""
        return self.query().get(key_list, opts, **kwargs).run()

    def get_all(self, *key_lists: Any, **kwargs: Any) -> list[Any]:
        """Run get_all() as a one-shot query."""
        return self.query().get_all(*key_lists, **kwargs).run()

    def between(
        self, left_keys: Any, right_keys: Any, opts: dict[str, Any] | None = None, **kwargs: Any
    ) -> list[Any]:
        """Run between() as a one-shot query."""
        return self.query().between(left_keys, right_keys, opts, **kwargs).run()

    def filter(self, query_or_fn: Any = None, this_arg: Any = None) -> list[Any]:
        """Run filter() as a one-shot query."""
        return self.query().filter(query_or_fn, this_arg).run()
