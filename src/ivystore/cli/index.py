"""ivy index: verify indexes against the files and rebuild them."""

from __future__ import annotations

from typing import Optional

import typer

from ivystore.cli import _exitcodes as ec
from ivystore.cli._output import print_error, print_object
from ivystore.cli._storage import open_cli_store
from ivystore.errors import IvyError

app = typer.Typer(no_args_is_help=True)


@app.command(name="verify")
def index_verify_cmd(
    table: Optional[str] = typer.Argument(None, help="Table to verify (default: all indexed)"),
) -> None:
    """Check that every index matches a fresh scan of its table."""
    from ivystore.cli import state

    json_mode = state.json_output
    try:
        store = open_cli_store()
    except (IvyError, ValueError, OSError) as e:
        print_error(f"Cannot open store: {e}")
        raise typer.Exit(ec.code_for(e))

    try:
        tables = [table] if table else sorted(store.index_config)
        reports = [store.verify_indexes(t) for t in tables]
    except IvyError as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    finally:
        store.close()

    ok = all(r["ok"] for r in reports)
    if json_mode:
        print_object({"ok": ok, "tables": reports}, json_mode=True)
    else:
        for r in reports:
            status = "ok" if r["ok"] else f"{len(r['mismatches'])} mismatch(es)"
            print(f"{r['table']}: {status}")
            for m in r["mismatches"]:
                print(
                    f"  {m['kind']} {m['name']}={m['value']!r}: "
                    f"missing={m['missing']} extra={m['extra']}"
                )
    if not ok:
        raise typer.Exit(ec.INDEX_MISMATCH)


@app.command(name="rebuild")
def index_rebuild_cmd(table: str = typer.Argument(..., help="Table to reindex")) -> None:
    """Rebuild a table's indexes from its files."""
    try:
        store = open_cli_store()
        try:
            store.reindex(table)
        finally:
            store.close()
    except (IvyError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    print(f"Rebuilt indexes for {table}")
