"""Structured error types for ivystore."""

from __future__ import annotations


class IvyError(Exception):
    """Base error for all ivystore errors."""


class NotFoundError(IvyError):
    """Raised when the store root, a table directory, or a record is missing."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        record_id: str | None = None,
        path: str | None = None,
    ) -> None:
        self.table = table
        self.record_id = record_id
        self.path = path
        super().__init__(message)


class UnknownTableError(NotFoundError):
    """Raised when a table was not discovered when the store was opened."""

    def __init__(self, table: str) -> None:
        super().__init__(
            f"Unknown table '{table}': tables are discovered when the store is opened",
            table=table,
        )


class StorageIOError(IvyError):
    """Raised when the filesystem fails a read, write, remove or listing."""

    def __init__(self, operation: str, path: str, detail: str) -> None:
        self.operation = operation
        self.path = path
        self.detail = detail
        super().__init__(f"Storage error during {operation} of {path}: {detail}")


class DecodeError(IvyError):
    """Raised when a stored document cannot be decoded or has the wrong shape."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        record_id: str | None = None,
        field: str | None = None,
    ) -> None:
        self.table = table
        self.record_id = record_id
        self.field = field
        where = ""
        if table is not None and record_id is not None:
            where = f" [{table}/{record_id}]"
        super().__init__(f"{message}{where}")


class InvalidIdentifierError(IvyError):
    """Raised when a record identifier is not a positive decimal integer."""

    def __init__(self, record_id: object) -> None:
        self.record_id = record_id
        super().__init__(
            f"Invalid record identifier {record_id!r}: expected a positive decimal integer"
        )


class EmptyResultError(IvyError):
    """Raised when a find-first query matches no record."""

    def __init__(self, table: str, field: str, value: object) -> None:
        self.table = table
        self.field = field
        self.value = value
        super().__init__(f"No record in '{table}' has {field} == {value!r}")
