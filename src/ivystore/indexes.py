"""Secondary indexes: field equality index and tag membership index.

Indexes are rebuilt from a full scan of the table after every mutation. A
rebuild decodes every record first and builds fresh structures; the table's
index state is only replaced once the whole scan succeeded, so a failed
rebuild leaves the previous (stale) index in place.

Field policy, applied identically when building and when scanning:

- a record without the field is skipped for that field
- any present value is bucketed by :func:`ivystore.values.value_key`
- ``tags`` must be an array of strings, otherwise the rebuild raises
  :class:`~ivystore.errors.DecodeError`; a record without ``tags`` is skipped
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Hashable, Iterable, Iterator

from ivystore import codec
from ivystore.errors import DecodeError
from ivystore.tables import TableStore
from ivystore.values import Document, value_key

logger = logging.getLogger(__name__)

TAGS = "tags"


def record_tags(
    doc: Document, *, table: str | None = None, record_id: str | None = None
) -> list[str] | None:
    """Return a record's tags, None if it has none, or raise DecodeError."""
    value = doc.get(TAGS)
    if value is None:
        return None
    try:
        return value.as_str_list(TAGS)
    except DecodeError as e:
        raise DecodeError(str(e), table=table, record_id=record_id, field=TAGS) from None


def field_key(doc: Document, field: str) -> Hashable | None:
    """Return the equality key of ``field`` in ``doc``, or None when absent."""
    value = doc.get(field)
    if value is None:
        return None
    return value.key()


class FieldIndex:
    """``field -> value key -> set of record ids`` for the configured fields."""

    def __init__(self, fields: Iterable[str] = ()) -> None:
        self._buckets: dict[str, dict[Hashable, set[str]]] = {f: {} for f in fields}

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._buckets)

    def covers(self, field: str) -> bool:
        return field in self._buckets

    def add(self, field: str, key: Hashable, record_id: str) -> None:
        self._buckets[field].setdefault(key, set()).add(record_id)

    def lookup(self, field: str, value: Any) -> set[str]:
        return set(self._buckets[field].get(value_key(value), ()))

    def buckets(self, field: str) -> dict[Hashable, set[str]]:
        return {k: set(v) for k, v in self._buckets[field].items()}

    def ids(self) -> set[str]:
        out: set[str] = set()
        for buckets in self._buckets.values():
            for ids in buckets.values():
                out |= ids
        return out


class TagIndex:
    """``tag -> set of record ids``."""

    def __init__(self) -> None:
        self._buckets: dict[str, set[str]] = {}

    def add(self, tag: str, record_id: str) -> None:
        self._buckets.setdefault(tag, set()).add(record_id)

    def lookup(self, tag: str) -> set[str]:
        return set(self._buckets.get(tag, ()))

    def tags(self) -> list[str]:
        return sorted(self._buckets)

    def buckets(self) -> dict[str, set[str]]:
        return {k: set(v) for k, v in self._buckets.items()}

    def ids(self) -> set[str]:
        out: set[str] = set()
        for ids in self._buckets.values():
            out |= ids
        return out

    def match_all(self, tags: Iterable[str]) -> set[str]:
        """Return ids carrying every one of ``tags``; empty input matches nothing."""
        wanted = set(tags)
        if not wanted:
            return set()
        counts: Counter[str] = Counter()
        for tag in wanted:
            for record_id in self._buckets.get(tag, ()):
                counts[record_id] += 1
        return {record_id for record_id, n in counts.items() if n == len(wanted)}


class TableIndexes:
    """The index configuration and current index pair of one table."""

    def __init__(self, indexed_fields: Iterable[str] = ()) -> None:
        self.configured: tuple[str, ...] = tuple(dict.fromkeys(indexed_fields))
        self.field_index: FieldIndex | None = None
        self.tag_index: TagIndex | None = None

    @property
    def indexed(self) -> bool:
        return bool(self.configured)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f for f in self.configured if f != TAGS)

    @property
    def indexes_tags(self) -> bool:
        return TAGS in self.configured

    def lookup_field(self, field: str, value: Any) -> set[str] | None:
        """Return the indexed ids for ``field == value``, or None if the field is not indexed."""
        if self.field_index is None or not self.field_index.covers(field):
            return None
        return self.field_index.lookup(field, value)

    def lookup_tags(self, tags: Iterable[str]) -> set[str] | None:
        """Return ids carrying all ``tags``, or None if there is no tag index."""
        if self.tag_index is None:
            return None
        return self.tag_index.match_all(tags)


class IndexEngine:
    """Builds a table's indexes by rescanning every record in it."""

    def __init__(self, tables: TableStore) -> None:
        self.tables = tables

    def scan(self, table: str) -> Iterator[tuple[str, Document]]:
        """Yield ``(record_id, document)`` for every record in the table."""
        encoding = self.tables.config.encoding
        for record_id, data in self.tables.iter_records(table):
            doc = codec.decode(data, encoding=encoding, table=table, record_id=record_id)
            yield record_id, Document(doc)

    def build_field_index(
        self, table: str, fields: Iterable[str], docs: Iterable[tuple[str, Document]]
    ) -> FieldIndex:
        index = FieldIndex(f for f in fields if f != TAGS)
        for record_id, doc in docs:
            for field in index.fields:
                key = field_key(doc, field)
                if key is not None:
                    index.add(field, key, record_id)
        return index

    def build_tag_index(self, table: str, docs: Iterable[tuple[str, Document]]) -> TagIndex:
        index = TagIndex()
        for record_id, doc in docs:
            for tag in record_tags(doc, table=table, record_id=record_id) or ():
                index.add(tag, record_id)
        return index

    def rebuild_field_index(self, table: str, indexes: TableIndexes) -> None:
        if not indexes.indexed:
            return
        indexes.field_index = self.build_field_index(
            table, indexes.field_names, self.scan(table)
        )

    def rebuild_tag_index(self, table: str, indexes: TableIndexes) -> None:
        if not indexes.indexes_tags:
            return
        indexes.tag_index = self.build_tag_index(table, self.scan(table))

    def rebuild(self, table: str, indexes: TableIndexes) -> None:
        """Recompute both indexes of ``table`` from one scan of its records.

        The caller must hold the table's write lock, or be opening the store.
        """
        if not indexes.indexed:
            return
        docs = list(self.scan(table))
        field_index = self.build_field_index(table, indexes.field_names, docs)
        tag_index = self.build_tag_index(table, docs) if indexes.indexes_tags else None
        indexes.field_index = field_index
        indexes.tag_index = tag_index
        logger.debug(
            "rebuilt indexes for table %s: %d records, fields=%s, tags=%s",
            table,
            len(docs),
            list(field_index.fields),
            tag_index is not None,
        )
