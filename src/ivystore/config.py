"""Configuration for ivystore."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoreConfig:
    """Configuration for an opened store."""

    file_suffix: str = ".json"
    file_mode: int = 0o600
    encoding: str = "utf-8"
    persist_id_counter: bool = True
    counter_filename: str = ".seq"
    json_indent: int | None = None
