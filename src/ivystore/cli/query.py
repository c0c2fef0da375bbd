"""ivy ids / get / lookup / tags: read records and query indexes."""

from __future__ import annotations

from typing import List

import typer

from ivystore.cli import _exitcodes as ec
from ivystore.cli._output import print_error, print_ids, print_object
from ivystore.cli._storage import open_cli_store, parse_value
from ivystore.errors import IvyError
from ivystore.tables import id_sort_key


def ids_cmd(table: str = typer.Argument(..., help="Table name")) -> None:
    """List every record id in a table."""
    from ivystore.cli import state

    try:
        store = open_cli_store()
        try:
            ids = store.find_all_ids(table)
        finally:
            store.close()
    except (IvyError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    print_ids(ids, json_mode=state.json_output)


def get_cmd(
    table: str = typer.Argument(..., help="Table name"),
    record_id: str = typer.Argument(..., help="Record id"),
) -> None:
    """Print one record."""
    from ivystore.cli import state

    try:
        store = open_cli_store()
        try:
            record = store.find(table, record_id)
        finally:
            store.close()
    except (IvyError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    print_object(record, json_mode=state.json_output)


def lookup_cmd(
    table: str = typer.Argument(..., help="Table name"),
    field: str = typer.Argument(..., help="Field to match"),
    value: str = typer.Argument(..., help="Value; parsed as JSON when possible"),
    first: bool = typer.Option(False, "--first", help="Only print the first matching id"),
) -> None:
    """Find record ids whose FIELD equals VALUE."""
    from ivystore.cli import state

    parsed = parse_value(value)
    try:
        store = open_cli_store()
        try:
            if first:
                ids = [store.find_first_id_for_field(table, field, parsed)]
            else:
                ids = sorted(store.find_all_ids_for_field(table, field, parsed), key=id_sort_key)
        finally:
            store.close()
    except (IvyError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    print_ids(ids, json_mode=state.json_output)


def tags_cmd(
    table: str = typer.Argument(..., help="Table name"),
    tags: List[str] = typer.Argument(..., help="Tags that every match must carry"),
) -> None:
    """Find record ids tagged with every one of TAGS."""
    from ivystore.cli import state

    try:
        store = open_cli_store()
        try:
            ids = sorted(store.find_all_ids_for_tags(table, tags), key=id_sort_key)
        finally:
            store.close()
    except (IvyError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(ec.code_for(e))
    print_ids(ids, json_mode=state.json_output)
