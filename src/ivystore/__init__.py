"""ivystore: embeddable file-backed record store with secondary indexes."""

__version__ = "0.1.0"

from ivystore.config import StoreConfig
from ivystore.errors import (
    DecodeError,
    EmptyResultError,
    InvalidIdentifierError,
    IvyError,
    NotFoundError,
    StorageIOError,
    UnknownTableError,
)
from ivystore.records import AfterFind, Record
from ivystore.store import Store, open_store

__all__ = [
    "__version__",
    "Store",
    "open_store",
    "StoreConfig",
    "Record",
    "AfterFind",
    "IvyError",
    "NotFoundError",
    "UnknownTableError",
    "StorageIOError",
    "DecodeError",
    "InvalidIdentifierError",
    "EmptyResultError",
]
