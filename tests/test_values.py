"""Tests for tagged values and the shared equality rule."""

from __future__ import annotations

import pytest

from ivystore.errors import DecodeError
from ivystore.values import ARRAY, BOOLEAN, NULL, NUMBER, OBJECT, STRING, Document, Value, value_key


class TestKinds:
    @pytest.mark.parametrize(
        "raw, kind",
        [
            ("x", STRING),
            (1, NUMBER),
            (1.5, NUMBER),
            (True, BOOLEAN),
            (None, NULL),
            ([1, 2], ARRAY),
            ({"a": 1}, OBJECT),
        ],
    )
    def test_kind(self, raw, kind):
        assert Value.of(raw).kind == kind

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            Value.of(object())


class TestValueKey:
    def test_int_equals_float(self):
        assert value_key(1) == value_key(1.0)

    def test_bool_is_not_number(self):
        assert value_key(True) != value_key(1)
        assert value_key(False) != value_key(0)

    def test_string_never_coerces(self):
        assert value_key("1") != value_key(1)

    def test_null_only_equals_null(self):
        assert value_key(None) == value_key(None)
        assert value_key(None) != value_key("")
        assert value_key(None) != value_key(0)

    def test_arrays_compare_structurally(self):
        assert value_key([1, "a"]) == value_key((1.0, "a"))
        assert value_key([1, 2]) != value_key([2, 1])

    def test_objects_ignore_key_order(self):
        assert value_key({"a": 1, "b": [True]}) == value_key({"b": [True], "a": 1})

    def test_keys_are_hashable(self):
        assert hash(value_key({"a": [1, {"b": None}]})) is not None


class TestAccessors:
    def test_as_str(self):
        assert Value.of("go").as_str("tag") == "go"

    def test_as_str_wrong_kind(self):
        with pytest.raises(DecodeError, match="expected string"):
            Value.of(3).as_str("author")

    def test_as_str_list(self):
        assert Value.of(["a", "b"]).as_str_list("tags") == ["a", "b"]

    def test_as_str_list_not_array(self):
        with pytest.raises(DecodeError, match="expected array"):
            Value.of("a").as_str_list("tags")

    def test_as_str_list_mixed(self):
        with pytest.raises(DecodeError):
            Value.of(["a", 1]).as_str_list("tags")


class TestDocument:
    def test_get_missing_is_none(self):
        assert Document({"a": 1}).get("b") is None

    def test_get_null_is_a_value(self):
        value = Document({"a": None}).get("a")
        assert value is not None
        assert value.kind == NULL

    def test_require_missing(self):
        with pytest.raises(DecodeError, match="missing"):
            Document({}).require("author")

    def test_contains(self):
        doc = Document({"a": 1})
        assert "a" in doc
        assert "b" not in doc
