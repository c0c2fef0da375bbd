"""Filesystem table store: one directory per table, one JSON file per record."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from typing import Iterator

from ivystore.config import StoreConfig
from ivystore.errors import (
    DecodeError,
    InvalidIdentifierError,
    NotFoundError,
    StorageIOError,
)

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"[1-9][0-9]*")


def check_id(record_id: str | int) -> str:
    """Normalize a record identifier, raising InvalidIdentifierError if malformed."""
    if isinstance(record_id, bool):
        raise InvalidIdentifierError(record_id)
    if isinstance(record_id, int):
        record_id = str(record_id)
    if not isinstance(record_id, str) or not _ID_RE.fullmatch(record_id):
        raise InvalidIdentifierError(record_id)
    return record_id


def _is_int(stem: str) -> bool:
    return stem.isascii() and stem.isdigit()


def id_sort_key(record_id: str) -> tuple[int, int, str]:
    """Sort numeric ids numerically, anything else after them."""
    if _is_int(record_id):
        return (0, int(record_id), "")
    return (1, 0, record_id)


class TableStore:
    """Raw record access for the tables under a root directory.

    The table store does no locking of its own; callers hold the table's lock.
    """

    def __init__(self, root: str, config: StoreConfig | None = None) -> None:
        self.root = root
        self.config = config or StoreConfig()

    # --- Layout ---

    def table_path(self, table: str) -> str:
        return os.path.join(self.root, table)

    def record_path(self, table: str, record_id: str) -> str:
        return os.path.join(self.table_path(table), f"{record_id}{self.config.file_suffix}")

    def counter_path(self, table: str) -> str:
        return os.path.join(self.table_path(table), self.config.counter_filename)

    def check_root(self) -> None:
        if not os.path.isdir(self.root):
            raise NotFoundError(f"Store root '{self.root}' not found", path=self.root)

    def check_table(self, table: str) -> None:
        path = self.table_path(table)
        if not os.path.isdir(path):
            raise NotFoundError(f"Table directory '{table}' not found", table=table, path=path)

    def discover_tables(self) -> list[str]:
        """Return the names of the table directories present under the root."""
        try:
            with os.scandir(self.root) as it:
                return sorted(
                    entry.name
                    for entry in it
                    if entry.is_dir() and not entry.name.startswith(".")
                )
        except OSError as e:
            raise StorageIOError("list", self.root, str(e)) from e

    # --- Records ---

    def find(self, table: str, record_id: str) -> bytes:
        path = self.record_path(table, record_id)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Record '{record_id}' not found in table '{table}'",
                table=table,
                record_id=record_id,
                path=path,
            ) from e
        except OSError as e:
            raise StorageIOError("read", path, str(e)) from e

    def list_ids(self, table: str) -> list[str]:
        """Return the ids of every record file in the table, in no particular order."""
        suffix = self.config.file_suffix
        path = self.table_path(table)
        try:
            with os.scandir(path) as it:
                return [
                    entry.name[: -len(suffix)]
                    for entry in it
                    if entry.name.endswith(suffix)
                    and len(entry.name) > len(suffix)
                    and entry.is_file()
                ]
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Table directory '{table}' not found", table=table, path=path
            ) from e
        except OSError as e:
            raise StorageIOError("list", path, str(e)) from e

    def iter_records(self, table: str) -> Iterator[tuple[str, bytes]]:
        for record_id in self.list_ids(table):
            yield record_id, self.find(table, record_id)

    def allocate_id(self, table: str) -> str:
        """Return the next identifier: one past the highest id ever seen.

        Without a persisted counter this is ``max(existing) + 1``, or ``1``
        for an empty table.
        """
        highest = 0
        for stem in self.list_ids(table):
            if not _is_int(stem):
                raise DecodeError(
                    f"Record file name '{stem}{self.config.file_suffix}' is not an integer id",
                    table=table,
                    record_id=stem,
                )
            highest = max(highest, int(stem))
        if self.config.persist_id_counter:
            highest = max(highest, self._read_counter(table))
        next_id = str(highest + 1)
        logger.debug("allocated id %s in table %s", next_id, table)
        return next_id

    def commit_id(self, table: str, record_id: str) -> None:
        """Record that ``record_id`` has been used so it is never allocated again."""
        if not self.config.persist_id_counter:
            return
        if int(record_id) > self._read_counter(table):
            self._write_atomic(self.counter_path(table), record_id.encode("ascii"))

    def write(self, table: str, record_id: str, data: bytes) -> None:
        self._write_atomic(self.record_path(table, record_id), data)

    def remove(self, table: str, record_id: str) -> None:
        path = self.record_path(table, record_id)
        try:
            os.remove(path)
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Record '{record_id}' not found in table '{table}'",
                table=table,
                record_id=record_id,
                path=path,
            ) from e
        except OSError as e:
            raise StorageIOError("remove", path, str(e)) from e

    # --- Internals ---

    def _read_counter(self, table: str) -> int:
        path = self.counter_path(table)
        try:
            with open(path, "rb") as f:
                raw = f.read().strip()
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise StorageIOError("read", path, str(e)) from e
        if not raw.isdigit():
            raise DecodeError(f"Id counter for table '{table}' is corrupt: {raw!r}", table=table)
        return int(raw)

    def _write_atomic(self, path: str, data: bytes) -> None:
        directory = os.path.dirname(path)
        tmp_path: str | None = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", dir=directory)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, self.config.file_mode)
            os.replace(tmp_path, path)
            tmp_path = None
        except FileNotFoundError as e:
            raise NotFoundError(f"Directory for '{path}' not found", path=directory) from e
        except OSError as e:
            raise StorageIOError("write", path, str(e)) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
