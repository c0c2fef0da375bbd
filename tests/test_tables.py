"""Tests for the filesystem table store."""

from __future__ import annotations

import os

import pytest

from ivystore.config import StoreConfig
from ivystore.errors import DecodeError, InvalidIdentifierError, NotFoundError
from ivystore.tables import TableStore, check_id, id_sort_key


@pytest.fixture
def tables(root):
    return TableStore(str(root))


class TestCheckId:
    @pytest.mark.parametrize("good", ["1", "42", "1000", 7])
    def test_valid(self, good):
        assert check_id(good) == str(good)

    @pytest.mark.parametrize(
        "bad", ["", "0", "-1", "+1", "01", "1.5", "abc", "../1", " 1", "1\n", 0, -3, True]
    )
    def test_invalid(self, bad):
        with pytest.raises(InvalidIdentifierError):
            check_id(bad)


def test_id_sort_key_orders_numerically():
    assert sorted(["10", "9", "x", "100"], key=id_sort_key) == ["9", "10", "100", "x"]


class TestLayout:
    def test_discover_tables(self, tables, root):
        (root / ".hidden").mkdir()
        (root / "file.txt").write_text("x")
        assert tables.discover_tables() == ["notes", "posts", "users"]

    def test_check_root_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            TableStore(str(tmp_path / "nope")).check_root()

    def test_check_table_missing(self, tables):
        with pytest.raises(NotFoundError) as exc:
            tables.check_table("comments")
        assert exc.value.table == "comments"


class TestRecords:
    def test_write_and_find(self, tables):
        tables.write("posts", "1", b'{"a": 1}')
        assert tables.find("posts", "1") == b'{"a": 1}'

    def test_write_overwrites(self, tables):
        tables.write("posts", "1", b"{}")
        tables.write("posts", "1", b'{"b": 2}')
        assert tables.find("posts", "1") == b'{"b": 2}'

    def test_write_sets_file_mode(self, tables, root):
        tables.write("posts", "1", b"{}")
        assert os.stat(root / "posts" / "1.json").st_mode & 0o777 == 0o600

    def test_write_leaves_no_temp_files(self, tables, root):
        tables.write("posts", "1", b"{}")
        assert os.listdir(root / "posts") == ["1.json"]

    def test_find_missing(self, tables):
        with pytest.raises(NotFoundError) as exc:
            tables.find("posts", "9")
        assert exc.value.record_id == "9"

    def test_list_ids_ignores_other_files(self, tables, root):
        tables.write("posts", "1", b"{}")
        tables.write("posts", "2", b"{}")
        (root / "posts" / "readme.txt").write_text("x")
        (root / "posts" / ".seq").write_text("5")
        assert sorted(tables.list_ids("posts")) == ["1", "2"]

    def test_list_ids_empty(self, tables):
        assert tables.list_ids("posts") == []

    def test_list_ids_missing_table(self, tables):
        with pytest.raises(NotFoundError):
            tables.list_ids("comments")

    def test_remove(self, tables):
        tables.write("posts", "1", b"{}")
        tables.remove("posts", "1")
        assert tables.list_ids("posts") == []

    def test_remove_missing(self, tables):
        with pytest.raises(NotFoundError):
            tables.remove("posts", "1")

    def test_iter_records(self, tables):
        tables.write("posts", "1", b"{}")
        tables.write("posts", "2", b"[]")
        assert dict(tables.iter_records("posts")) == {"1": b"{}", "2": b"[]"}


class TestAllocateId:
    def test_empty_table_starts_at_one(self, tables):
        assert tables.allocate_id("posts") == "1"

    def test_max_plus_one(self, tables):
        for record_id in ("1", "2", "10"):
            tables.write("posts", record_id, b"{}")
        assert tables.allocate_id("posts") == "11"

    def test_non_integer_stem(self, tables):
        tables.write("posts", "draft", b"{}")
        with pytest.raises(DecodeError, match="not an integer"):
            tables.allocate_id("posts")

    def test_counter_prevents_reuse(self, tables):
        tables.write("posts", "1", b"{}")
        tables.write("posts", "2", b"{}")
        tables.commit_id("posts", "2")
        tables.remove("posts", "2")
        assert tables.allocate_id("posts") == "3"

    def test_counter_never_decreases(self, tables, root):
        tables.commit_id("posts", "5")
        tables.commit_id("posts", "3")
        assert (root / "posts" / ".seq").read_text() == "5"

    def test_without_counter_deleted_max_is_reused(self, root):
        tables = TableStore(str(root), StoreConfig(persist_id_counter=False))
        tables.write("posts", "1", b"{}")
        tables.write("posts", "2", b"{}")
        tables.commit_id("posts", "2")
        tables.remove("posts", "2")
        assert tables.allocate_id("posts") == "2"
        assert not (root / "posts" / ".seq").exists()

    def test_corrupt_counter(self, tables, root):
        (root / "posts" / ".seq").write_text("oops")
        with pytest.raises(DecodeError, match="corrupt"):
            tables.allocate_id("posts")

    def test_custom_suffix(self, root):
        tables = TableStore(str(root), StoreConfig(file_suffix=".doc"))
        tables.write("posts", "3", b"{}")
        assert (root / "posts" / "3.doc").exists()
        assert tables.allocate_id("posts") == "4"
