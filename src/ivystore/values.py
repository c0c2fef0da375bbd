"""Tagged values for decoded documents and the equality rule shared by indexes and scans.

Decoded JSON is wrapped in :class:`Value`, which records the kind of the
underlying data (string, number, boolean, null, array, object) and offers
fallible accessors that raise :class:`~ivystore.errors.DecodeError` instead of
failing on an unchecked assumption.

Equality between a stored field and a query value goes through
:func:`value_key`. The same key is used to bucket the field index and to
compare records during a scan, so both lookup paths agree:

- integers and floats compare by numeric value (``1 == 1.0``)
- booleans are their own kind and never equal a number
- strings never coerce to numbers (``"1" != 1``)
- ``None`` only equals ``None``
- arrays and objects compare structurally
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Hashable, Mapping

from ivystore.errors import DecodeError

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
ARRAY = "array"
OBJECT = "object"

_MISSING = object()


def kind_of(raw: Any) -> str:
    """Return the JSON kind of a Python value."""
    if raw is None:
        return NULL
    if isinstance(raw, bool):
        return BOOLEAN
    if isinstance(raw, (int, float)):
        return NUMBER
    if isinstance(raw, str):
        return STRING
    if isinstance(raw, (list, tuple)):
        return ARRAY
    if isinstance(raw, Mapping):
        return OBJECT
    raise TypeError(f"Unsupported value type: {type(raw).__name__}")


def value_key(raw: Any) -> Hashable:
    """Return the hashable equality key for a value."""
    kind = kind_of(raw)
    if kind == NUMBER:
        if isinstance(raw, float) and raw.is_integer():
            return (NUMBER, int(raw))
        if isinstance(raw, float) and math.isnan(raw):
            return (NUMBER, "nan")
        return (NUMBER, raw)
    if kind == ARRAY:
        return (ARRAY, tuple(value_key(v) for v in raw))
    if kind == OBJECT:
        return (OBJECT, tuple(sorted((str(k), value_key(v)) for k, v in raw.items())))
    return (kind, raw)


@dataclass(frozen=True)
class Value:
    """A decoded JSON value tagged with its kind."""

    kind: str
    raw: Any

    @classmethod
    def of(cls, raw: Any) -> Value:
        return cls(kind_of(raw), raw)

    def key(self) -> Hashable:
        return value_key(self.raw)

    def as_str(self, field: str = "") -> str:
        if self.kind != STRING:
            raise DecodeError(f"Field '{field}' is {self.kind}, expected string", field=field)
        return self.raw

    def as_list(self, field: str = "") -> list[Value]:
        if self.kind != ARRAY:
            raise DecodeError(f"Field '{field}' is {self.kind}, expected array", field=field)
        return [Value.of(v) for v in self.raw]

    def as_str_list(self, field: str = "") -> list[str]:
        return [item.as_str(field) for item in self.as_list(field)]


class Document:
    """Read-only view over a decoded record with fallible field access."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    @property
    def data(self) -> Mapping[str, Any]:
        return self._data

    def __contains__(self, field: str) -> bool:
        return field in self._data

    def get(self, field: str) -> Value | None:
        """Return the field's tagged value, or None when the field is absent."""
        raw = self._data.get(field, _MISSING)
        if raw is _MISSING:
            return None
        return Value.of(raw)

    def require(self, field: str) -> Value:
        value = self.get(field)
        if value is None:
            raise DecodeError(f"Field '{field}' is missing", field=field)
        return value
