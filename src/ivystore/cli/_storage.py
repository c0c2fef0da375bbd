"""CLI helpers for resolving the store root and index configuration."""

from __future__ import annotations

import json
from typing import Any

import yaml

from ivystore.store import Store, open_store


def parse_index_option(option: str) -> tuple[str, list[str]]:
    """Parse ``table=field,field`` into ``(table, [field, ...])``."""
    table, sep, fields = option.partition("=")
    if not sep or not table.strip():
        raise ValueError(f"Invalid --index '{option}': expected TABLE=FIELD[,FIELD...]")
    return table.strip(), [f.strip() for f in fields.split(",") if f.strip()]


def load_config_file(path: str) -> dict[str, Any]:
    """Load a YAML config file with optional ``root`` and ``indexes`` keys."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    indexes = data.get("indexes") or {}
    if not isinstance(indexes, dict) or not all(isinstance(v, list) for v in indexes.values()):
        raise ValueError(f"'indexes' in {path} must map table names to lists of fields")
    return data


def resolve_binding() -> tuple[str, dict[str, list[str]]]:
    """Return (root, index_config) from CLI state, config file and --index options."""
    from ivystore.cli import state

    root = state.root
    index_config: dict[str, list[str]] = {}
    if state.config:
        data = load_config_file(state.config)
        root = root or data.get("root")
        for table, fields in (data.get("indexes") or {}).items():
            index_config[str(table)] = [str(f) for f in fields]
    for option in state.index:
        table, fields = parse_index_option(option)
        index_config[table] = fields
    return root or ".", index_config


def open_cli_store() -> Store:
    """Open the store selected by the global CLI options."""
    root, index_config = resolve_binding()
    return open_store(root, index_config)


def parse_value(raw: str) -> Any:
    """Parse a lookup value as JSON when it parses, else keep the raw string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw
