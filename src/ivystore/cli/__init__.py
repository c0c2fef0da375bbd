"""ivy CLI: operator console for inspecting an ivystore directory."""

from __future__ import annotations

from typing import List, Optional

import typer

from ivystore.cli import index, info, query

app = typer.Typer(
    name="ivy",
    help="ivy: operator console for inspecting an ivystore directory.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    root: str | None = None
    config: str | None = None
    index: list[str] = []
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("ivystore")
        except Exception:
            v = "unknown"
        print(f"ivy {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    root: Optional[str] = typer.Option(
        None,
        "--root",
        envvar="IVY_ROOT",
        help="Store root directory (default: current directory)",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="IVY_CONFIG",
        help="YAML config file with 'root' and 'indexes' keys",
    ),
    index_opts: Optional[List[str]] = typer.Option(
        None,
        "--index",
        "-i",
        help="Index configuration as TABLE=FIELD[,FIELD...]; repeatable",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all ivy commands."""
    state.root = root
    state.config = config
    state.index = list(index_opts or [])
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.add_typer(index.app, name="index", help="Index verification and rebuild commands")

app.command(name="info")(info.info_cmd)
app.command(name="ids")(query.ids_cmd)
app.command(name="get")(query.get_cmd)
app.command(name="lookup")(query.lookup_cmd)
app.command(name="tags")(query.tags_cmd)


def main() -> None:
    """Entry point for the ivy CLI."""
    app()
