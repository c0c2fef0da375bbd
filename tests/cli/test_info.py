"""Tests for ivy info."""

import json

from ivystore.cli import app
from tests.cli.conftest import invoke


def test_info_basic(runner, cli_root):
    result = invoke(runner, ["info"], cli_root)
    assert result.exit_code == 0
    assert f"Root: {cli_root}" in result.output
    assert "Tables: 2" in result.output
    assert "posts" in result.output
    assert "author" in result.output


def test_info_json(runner, cli_root):
    result = invoke(runner, ["--json", "info"], cli_root)
    assert result.exit_code == 0
    data = json.loads(result.output)
    tables = {t["table"]: t for t in data["tables"]}
    assert tables["posts"]["records"] == 2
    assert tables["posts"]["tag_index"] is True
    assert tables["notes"]["indexed_fields"] == []


def test_info_missing_root(runner, tmp_path):
    result = invoke(runner, ["info"], str(tmp_path / "nope"))
    assert result.exit_code == 3


def test_info_root_from_env(runner, cli_root):
    result = runner.invoke(app, ["info"], env={"IVY_ROOT": cli_root})
    assert result.exit_code == 0
    assert "Tables: 2" in result.output


def test_version(runner):
    result = invoke(runner, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("ivy ")
