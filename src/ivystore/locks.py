"""Per-table reader-writer locks.

Each table gets one :class:`TableEntry` when the store is opened. The entry
owns the table's lock and its index state; the index state is only reachable
through :meth:`LockManager.reading` and :meth:`LockManager.writing`, which hold
the lock for the lifetime of the ``with`` block.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator

from ivystore.errors import UnknownTableError
from ivystore.indexes import TableIndexes


class ReadWriteLock:
    """A writer-preferring reader-writer lock.

    Any number of readers may hold the lock together. A writer waits until the
    active readers finish, and once a writer is waiting new readers queue
    behind it. Acquisition blocks indefinitely; there is no timeout.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer


class TableEntry:
    """Lock and index state for one table."""

    def __init__(self, name: str, indexed_fields: Iterable[str] = ()) -> None:
        self.name = name
        self.lock = ReadWriteLock()
        self.indexes = TableIndexes(indexed_fields)


class LockManager:
    """Owns one :class:`TableEntry` per table known when the store was opened."""

    def __init__(self, tables: Iterable[str], index_config: dict[str, list[str]] | None = None):
        index_config = index_config or {}
        self._entries = {name: TableEntry(name, index_config.get(name, ())) for name in tables}

    def tables(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, table: str) -> bool:
        return table in self._entries

    def entry(self, table: str) -> TableEntry:
        try:
            return self._entries[table]
        except KeyError:
            raise UnknownTableError(table) from None

    def acquire_read(self, table: str) -> None:
        self.entry(table).lock.acquire_read()

    def release_read(self, table: str) -> None:
        self.entry(table).lock.release_read()

    def acquire_write(self, table: str) -> None:
        self.entry(table).lock.acquire_write()

    def release_write(self, table: str) -> None:
        self.entry(table).lock.release_write()

    @contextmanager
    def reading(self, table: str) -> Iterator[TableIndexes]:
        """Hold the table's read lock and yield its indexes."""
        entry = self.entry(table)
        entry.lock.acquire_read()
        try:
            yield entry.indexes
        finally:
            entry.lock.release_read()

    @contextmanager
    def writing(self, table: str) -> Iterator[TableIndexes]:
        """Hold the table's write lock and yield its indexes."""
        entry = self.entry(table)
        entry.lock.acquire_write()
        try:
            yield entry.indexes
        finally:
            entry.lock.release_write()

    def drain(self) -> None:
        """Wait for in-flight operations on every table to finish.

        Each table's write lock is taken and released in turn. Nothing stops
        new operations from starting afterwards.
        """
        for name in self.tables():
            lock = self._entries[name].lock
            lock.acquire_write()
            lock.release_write()
