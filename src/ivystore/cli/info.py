"""ivy info: show the store's tables, index configuration and record counts."""

from __future__ import annotations

from typing import Any

import typer

from ivystore.cli import _exitcodes as ec
from ivystore.cli._output import print_error, print_object, print_table
from ivystore.cli._storage import open_cli_store
from ivystore.errors import IvyError


def info_cmd() -> None:
    """Show tables, index configuration and record counts."""
    from ivystore.cli import state

    json_mode = state.json_output
    try:
        store = open_cli_store()
    except (IvyError, ValueError, OSError) as e:
        print_error(f"Cannot open store: {e}")
        raise typer.Exit(ec.code_for(e))

    try:
        tables = [store.stats(t) for t in store.tables()]
        data: dict[str, Any] = {"root": store.root, "tables": tables}
        if json_mode:
            print_object(data, json_mode=True)
            return
        print(f"Root: {store.root}")
        print(f"Tables: {len(tables)}")
        rows = [
            [
                t["table"],
                t["records"],
                ", ".join(t["indexed_fields"]) or "-",
                "yes" if t["tag_index"] else "no",
            ]
            for t in tables
        ]
        if rows:
            print()
            print_table(["table", "records", "indexed fields", "tag index"], rows)
    except IvyError as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    finally:
        store.close()
