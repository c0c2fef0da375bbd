"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from ivystore import open_store
from ivystore.cli import app

if TYPE_CHECKING:
    from click.testing import Result

INDEXES = ["--index", "posts=author,tags"]


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_root(tmp_path):
    """Create a store with seeded posts and notes."""
    root = tmp_path / "store"
    for name in ("posts", "notes"):
        (root / name).mkdir(parents=True)
    with open_store(str(root), {"posts": ["author", "tags"]}) as store:
        store.create("posts", {"author": "alice", "tags": ["go", "db"], "n": 1})
        store.create("posts", {"author": "bob", "tags": ["go"], "n": 2})
        store.create("notes", {"text": "hello"})
    return str(root)


def invoke(runner: CliRunner, args: list[str], root: str | None = None) -> "Result":
    """Invoke CLI with the store root and index options set."""
    if root:
        args = ["--root", root] + INDEXES + args
    return runner.invoke(app, args, catch_exceptions=False)
