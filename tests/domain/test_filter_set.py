"""Tests for FilterSet in both modes."""

from __future__ import annotations

import pytest

from recordscope.domain.models import Filter, FilterMode, FilterSet


def _collect(filter_set: FilterSet) -> list:
    emitted: list = []
    filter_set.changed.connect(emitted.append)
    return emitted


class TestReplaceMode:
    def test_add_appends_new_columns(self) -> None:
        filters = FilterSet()
        filters.add(Filter("level", 2))
        filters.add(Filter("source", "api"))
        assert filters.list() == [Filter("level", 2), Filter("source", "api")]

    def test_same_column_replaces_in_place(self) -> None:
        filters = FilterSet(FilterMode.REPLACE)
        filters.add(Filter("level", 2))
        filters.add(Filter("source", "api"))
        filters.add(Filter("level", 4))
        assert filters.snapshot() == (Filter("level", 4), Filter("source", "api"))

    def test_re_adding_identical_filter_does_not_emit(self) -> None:
        filters = FilterSet()
        filters.add(Filter("level", 2))
        emitted = _collect(filters)
        filters.add(Filter("level", 2))
        assert emitted == []


class TestMultiMode:
    def test_values_accumulate_per_column(self) -> None:
        filters = FilterSet(FilterMode.MULTI)
        filters.add(Filter("level", 3))
        filters.add(Filter("level", 4))
        assert len(filters) == 2

    def test_adding_present_filter_toggles_it_off(self) -> None:
        filters = FilterSet(FilterMode.MULTI)
        filters.add(Filter("level", 3))
        filters.add(Filter("level", 4))
        filters.add(Filter("level", 3))
        assert filters.list() == [Filter("level", 4)]


def test_mutations_emit_snapshot() -> None:
    filters = FilterSet()
    emitted = _collect(filters)
    filters.add(Filter("source", "api"))
    filters.remove(0)
    assert emitted == [(Filter("source", "api"),), ()]


def test_remove_out_of_range_raises() -> None:
    filters = FilterSet()
    with pytest.raises(IndexError):
        filters.remove(0)


def test_clear_on_empty_set_does_not_emit() -> None:
    filters = FilterSet()
    emitted = _collect(filters)
    filters.clear()
    assert emitted == []


def test_equality_and_iteration() -> None:
    left, right = FilterSet(), FilterSet()
    left.add(Filter("level", 1))
    right.add(Filter("level", 1))
    assert left == right
    assert list(left) == [Filter("level", 1)]


def test_mode_accepts_string() -> None:
    assert FilterSet("multi").mode is FilterMode.MULTI
