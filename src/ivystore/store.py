"""The public store handle: lookups, mutations and index maintenance under table locks."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, TypeVar, overload

from pydantic import BaseModel

from ivystore import codec
from ivystore.config import StoreConfig
from ivystore.errors import EmptyResultError
from ivystore.indexes import TAGS, IndexEngine, TableIndexes, TagIndex, field_key, record_tags
from ivystore.locks import LockManager
from ivystore.records import AfterFind, adapt, to_document
from ivystore.tables import TableStore, check_id, id_sort_key
from ivystore.values import value_key

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Store:
    """File-backed record store.

    Tables are the subdirectories of ``root`` present when the store is opened.
    ``index_config`` maps a table name to the fields to index; the reserved
    field ``"tags"`` builds a tag index instead of a field index.

    Every operation takes the table's lock: shared for reads, exclusive for
    writes. A write holds the lock across both the file change and the index
    rebuild, so readers never observe files and indexes out of step. If the
    rebuild fails after the file was written, the error propagates and the
    file change is kept; the table's index stays stale until the next
    successful mutation or :meth:`reindex`.
    """

    def __init__(
        self,
        root: str,
        index_config: Mapping[str, Iterable[str]] | None = None,
        *,
        config: StoreConfig | None = None,
    ) -> None:
        self.config = config or StoreConfig()
        self._tables = TableStore(root, self.config)
        self._index_config = {t: list(dict.fromkeys(f)) for t, f in (index_config or {}).items()}

        self._tables.check_root()
        for table in self._index_config:
            self._tables.check_table(table)

        self._locks = LockManager(self._tables.discover_tables(), self._index_config)
        self._engine = IndexEngine(self._tables)

        for table in self._index_config:
            self._engine.rebuild(table, self._locks.entry(table).indexes)
        logger.debug("opened store at %s with tables %s", root, self._locks.tables())

    # --- Introspection ---

    @property
    def root(self) -> str:
        return self._tables.root

    @property
    def index_config(self) -> dict[str, list[str]]:
        return {t: list(f) for t, f in self._index_config.items()}

    def tables(self) -> list[str]:
        return self._locks.tables()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- Reads ---

    @overload
    def find(self, table: str, record_id: str | int) -> dict[str, Any]: ...

    @overload
    def find(self, table: str, record_id: str | int, model: type[M]) -> M: ...

    def find(self, table: str, record_id: str | int, model: type[M] | None = None) -> Any:
        """Load one record, optionally validated into ``model``.

        When the loaded model implements ``after_find(store, record_id)`` it is
        called before the read lock is released.
        """
        record_id = check_id(record_id)
        with self._locks.reading(table):
            doc = self._load(table, record_id)
            if model is None:
                return doc
            rec = adapt(doc, model, table=table, record_id=record_id)
            if isinstance(rec, AfterFind):
                rec.after_find(self, record_id)
            return rec

    def find_all_ids(self, table: str) -> list[str]:
        with self._locks.reading(table):
            return sorted(self._tables.list_ids(table), key=id_sort_key)

    def find_first_id_for_field(self, table: str, field: str, value: Any) -> str:
        """Return the lowest matching id; raise EmptyResultError when nothing matches."""
        ids = self.find_all_ids_for_field(table, field, value)
        if not ids:
            raise EmptyResultError(table, field, value)
        return min(ids, key=id_sort_key)

    def find_all_ids_for_field(self, table: str, field: str, value: Any) -> set[str]:
        with self._locks.reading(table) as indexes:
            ids = indexes.lookup_field(field, value)
            if ids is not None:
                return ids
            return self._scan_field(table, field, value)

    def find_all_ids_for_tags(self, table: str, tags: Iterable[str]) -> set[str]:
        """Return ids whose tags include every tag in ``tags``.

        An empty ``tags`` matches nothing.
        """
        tags = list(tags)
        with self._locks.reading(table) as indexes:
            ids = indexes.lookup_tags(tags)
            if ids is not None:
                return ids
            return self._scan_tags(table, tags)

    # --- Writes ---

    def create(self, table: str, record: Mapping[str, Any] | BaseModel) -> str:
        data = self._encode(record)
        with self._locks.writing(table) as indexes:
            record_id = self._tables.allocate_id(table)
            self._tables.write(table, record_id, data)
            self._tables.commit_id(table, record_id)
            self._rebuild(table, indexes, "create", record_id)
        return record_id

    def update(
        self, table: str, record: Mapping[str, Any] | BaseModel, record_id: str | int
    ) -> None:
        record_id = check_id(record_id)
        data = self._encode(record)
        with self._locks.writing(table) as indexes:
            self._tables.write(table, record_id, data)
            self._tables.commit_id(table, record_id)
            self._rebuild(table, indexes, "update", record_id)

    def delete(self, table: str, record_id: str | int) -> None:
        record_id = check_id(record_id)
        with self._locks.writing(table) as indexes:
            self._tables.remove(table, record_id)
            self._rebuild(table, indexes, "delete", record_id)

    def reindex(self, table: str) -> None:
        """Rebuild the table's indexes from its files."""
        with self._locks.writing(table) as indexes:
            self._engine.rebuild(table, indexes)

    def close(self) -> None:
        """Wait for in-flight operations to finish on every table."""
        self._locks.drain()

    # --- Maintenance ---

    def verify_indexes(self, table: str) -> dict[str, Any]:
        """Compare the table's indexes against a fresh scan.

        Returns a report with ``ok`` and a list of ``mismatches``; each mismatch
        names the field (or tag) and the ids missing from or extra in the index.
        """
        with self._locks.reading(table) as indexes:
            report: dict[str, Any] = {"table": table, "indexed": indexes.indexed, "mismatches": []}
            if not indexes.indexed:
                report["ok"] = True
                return report
            docs = list(self._engine.scan(table))
            expected_fields = self._engine.build_field_index(table, indexes.field_names, docs)
            for field in indexes.field_names:
                actual = indexes.field_index.buckets(field) if indexes.field_index else {}
                self._diff(report, "field", field, expected_fields.buckets(field), actual)
            if indexes.indexes_tags:
                expected_tags = self._engine.build_tag_index(table, docs)
                actual_tags = indexes.tag_index or TagIndex()
                self._diff(report, "tag", TAGS, expected_tags.buckets(), actual_tags.buckets())
            report["ok"] = not report["mismatches"]
            return report

    def stats(self, table: str) -> dict[str, Any]:
        with self._locks.reading(table) as indexes:
            data: dict[str, Any] = {
                "table": table,
                "records": len(self._tables.list_ids(table)),
                "indexed_fields": list(indexes.field_names),
                "tag_index": indexes.indexes_tags,
            }
            if indexes.field_index is not None:
                data["field_buckets"] = {
                    f: len(indexes.field_index.buckets(f)) for f in indexes.field_index.fields
                }
            if indexes.tag_index is not None:
                data["tags"] = len(indexes.tag_index.tags())
            return data

    # --- Internals ---

    def _encode(self, record: Mapping[str, Any] | BaseModel) -> bytes:
        return codec.encode(
            to_document(record),
            encoding=self.config.encoding,
            indent=self.config.json_indent,
        )

    def _load(self, table: str, record_id: str) -> dict[str, Any]:
        return codec.decode(
            self._tables.find(table, record_id),
            encoding=self.config.encoding,
            table=table,
            record_id=record_id,
        )

    def _rebuild(self, table: str, indexes: TableIndexes, operation: str, record_id: str) -> None:
        try:
            self._engine.rebuild(table, indexes)
        except Exception:
            logger.warning(
                "index rebuild failed after %s of %s/%s; index is stale until the next write",
                operation,
                table,
                record_id,
            )
            raise

    def _scan_field(self, table: str, field: str, value: Any) -> set[str]:
        key = value_key(value)
        return {
            record_id
            for record_id, doc in self._engine.scan(table)
            if field_key(doc, field) == key
        }

    def _scan_tags(self, table: str, tags: list[str]) -> set[str]:
        wanted = set(tags)
        if not wanted:
            return set()
        ids: set[str] = set()
        for record_id, doc in self._engine.scan(table):
            have = record_tags(doc, table=table, record_id=record_id)
            if have is not None and wanted.issubset(have):
                ids.add(record_id)
        return ids

    @staticmethod
    def _diff(
        report: dict[str, Any],
        kind: str,
        name: str,
        expected: dict[Any, set[str]],
        actual: dict[Any, set[str]],
    ) -> None:
        for key in set(expected) | set(actual):
            want = expected.get(key, set())
            have = actual.get(key, set())
            if want != have:
                report["mismatches"].append(
                    {
                        "kind": kind,
                        "name": name,
                        "value": key if isinstance(key, str) else key[1],
                        "missing": sorted(want - have, key=id_sort_key),
                        "extra": sorted(have - want, key=id_sort_key),
                    }
                )


def open_store(
    root: str,
    index_config: Mapping[str, Iterable[str]] | None = None,
    *,
    config: StoreConfig | None = None,
) -> Store:
    """Open the store rooted at ``root``.

    Raises NotFoundError when the root, or a table named in ``index_config``,
    does not exist.
    """
    return Store(root, index_config, config=config)


__all__ = ["Store", "open_store"]
