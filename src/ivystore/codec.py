"""JSON document codec for record files."""

from __future__ import annotations

import json
from typing import Any, Mapping

from ivystore.errors import DecodeError


def encode(doc: Mapping[str, Any], *, encoding: str = "utf-8", indent: int | None = None) -> bytes:
    """Serialize a document mapping to bytes."""
    try:
        text = json.dumps(dict(doc), ensure_ascii=False, indent=indent)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Record is not JSON serializable: {e}") from e
    return text.encode(encoding)


def decode(
    data: bytes,
    *,
    encoding: str = "utf-8",
    table: str | None = None,
    record_id: str | None = None,
) -> dict[str, Any]:
    """Parse record bytes into a document mapping.

    Raises DecodeError when the bytes are not JSON or the top level is not an object.
    """
    try:
        doc = json.loads(data.decode(encoding))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Malformed record: {e}", table=table, record_id=record_id) from e
    if not isinstance(doc, dict):
        raise DecodeError(
            f"Record must be a JSON object, got {type(doc).__name__}",
            table=table,
            record_id=record_id,
        )
    return doc
