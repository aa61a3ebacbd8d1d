"""Tests for the record value types: Row, Cursor, Filter and Level."""

from __future__ import annotations

import base64
import dataclasses
import json

import pytest

from recordscope.domain.models import Cursor, Filter, Level, MarkerKind, Row
from recordscope.errors import InvalidFilterError


class TestCursor:
    def test_encode_decode_roundtrip(self) -> None:
        original = Cursor(timestamp_ms=1_700_000_000_123, id=42)
        assert Cursor.decode(original.encode()) == original

    def test_encode_produces_url_safe_string(self) -> None:
        encoded = Cursor(timestamp_ms=2**40, id=2**31).encode()
        assert all(c.isalnum() or c in "-_=" for c in encoded)

    def test_decode_invalid_string_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid cursor format"):
            Cursor.decode("not-valid-base64!!!")

    def test_decode_missing_fields_raises(self) -> None:
        bad_payload = base64.urlsafe_b64encode(json.dumps({"ts": 5}).encode()).decode()
        with pytest.raises(ValueError, match="missing required fields"):
            Cursor.decode(bad_payload)

    def test_ordering_compares_timestamp_then_id(self) -> None:
        assert Cursor(timestamp_ms=10, id=99) < Cursor(timestamp_ms=11, id=1)
        assert Cursor(timestamp_ms=10, id=1) < Cursor(timestamp_ms=10, id=2)


class TestRow:
    def test_key_is_cursor_of_row(self) -> None:
        row = Row(id=7, timestamp_ms=1234)
        assert row.key == Cursor(timestamp_ms=1234, id=7)

    def test_added_at_is_ignored_by_equality(self) -> None:
        row = Row(id=1, timestamp_ms=1, message="x")
        assert dataclasses.replace(row, added_at=99) == row

    def test_level_name(self) -> None:
        assert Row(id=1, timestamp_ms=1, level=3).level_name == "WARN"
        assert Row(id=1, timestamp_ms=1).level_name == ""
        assert Row(id=1, timestamp_ms=1, level=42).level_name == "42"


class TestFilter:
    def test_rejects_unknown_column(self) -> None:
        with pytest.raises(InvalidFilterError):
            Filter(column="message; DROP TABLE records", value="x")

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("level=warn", Filter("level", int(Level.WARN))),
            ("level=4", Filter("level", 4)),
            ("source=api", Filter("source", "api")),
            ("source=", Filter("source", None)),
            ("marker_kind=note", Filter("marker_kind", int(MarkerKind.NOTE))),
            ("marker_kind=null", Filter("marker_kind", None)),
        ],
    )
    def test_parse(self, text: str, expected: Filter) -> None:
        assert Filter.parse(text) == expected

    def test_parse_requires_equals(self) -> None:
        with pytest.raises(InvalidFilterError, match="column=value"):
            Filter.parse("level")

    def test_parse_unknown_level(self) -> None:
        with pytest.raises(InvalidFilterError):
            Filter.parse("level=loud")

    def test_matches_null(self) -> None:
        assert Filter("source", None).matches(Row(id=1, timestamp_ms=1))
        assert not Filter("source", None).matches(Row(id=1, timestamp_ms=1, source="api"))


def test_level_parse_accepts_names_and_numbers() -> None:
    assert Level.parse("warning") is Level.WARN
    assert Level.parse("Error") is Level.ERROR
    assert Level.parse("2") is Level.INFO
    assert Level.parse(0) is Level.TRACE
    assert Level.parse(None) is None
