"""Typed record models and the post-load adaptation hook."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ivystore.errors import DecodeError

if TYPE_CHECKING:
    from ivystore.store import Store

M = TypeVar("M", bound=BaseModel)


@runtime_checkable
class AfterFind(Protocol):
    """Models implementing this hook are called right after they are loaded.

    The hook runs while the table's read lock is still held. It must not call
    back into the store for the same table: a writer queued in between would
    deadlock both.
    """

    def after_find(self, store: Store, record_id: str) -> None: ...


class Record(BaseModel):
    """Base class for typed table models.

    Unknown document fields are kept so that an update round-trips whatever
    was stored, including fields the model does not declare.
    """

    model_config = ConfigDict(extra="allow")

    def after_find(self, store: Store, record_id: str) -> None:
        """Hook invoked by :meth:`Store.find` once the record is loaded."""


def to_document(record: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    """Convert a mapping or pydantic model into a plain JSON-ready document."""
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    if isinstance(record, Mapping):
        return dict(record)
    raise TypeError(f"Records must be mappings or pydantic models, got {type(record).__name__}")


def adapt(
    doc: dict[str, Any],
    model: type[M],
    *,
    table: str | None = None,
    record_id: str | None = None,
) -> M:
    """Validate a decoded document into ``model``."""
    try:
        return model.model_validate(doc)
    except PydanticValidationError as e:
        raise DecodeError(
            f"Record does not match {model.__name__}: {e.error_count()} validation error(s)",
            table=table,
            record_id=record_id,
        ) from e
