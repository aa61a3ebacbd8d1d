"""Ordered, observable collection of active filters."""

from __future__ import annotations

import enum
from typing import Iterator, List, Optional, Tuple

from ...events.signal import Signal
from .core import Filter


class FilterMode(str, enum.Enum):
    REPLACE = "replace"
    MULTI = "multi"


class FilterSet:
    """Filters applied to the window.

    In ``REPLACE`` mode a column holds at most one filter and adding another
    for the same column swaps it in place. In ``MULTI`` mode adding an exact
    ``(column, value)`` already present removes it (toggle); otherwise it is
    appended, and values of one column are OR-ed while columns are AND-ed.

    Every mutation that actually changes the set emits ``changed`` with the
    new snapshot.
    """

    def __init__(self, mode: FilterMode = FilterMode.REPLACE) -> None:
        self.mode = FilterMode(mode)
        self._filters: List[Filter] = []
        self.changed = Signal()

    def add(self, filter_: Filter) -> None:
        updated = list(self._filters)
        if self.mode is FilterMode.REPLACE:
            index = self._column_index(filter_.column)
            if index is None:
                updated.append(filter_)
            else:
                updated[index] = filter_
        elif filter_ in updated:
            updated.remove(filter_)
        else:
            updated.append(filter_)
        self._commit(updated)

    def remove(self, index: int) -> None:
        if not 0 <= index < len(self._filters):
            raise IndexError(f"filter index {index} out of range")
        updated = list(self._filters)
        del updated[index]
        self._commit(updated)

    def clear(self) -> None:
        self._commit([])

    def list(self) -> List[Filter]:
        return list(self._filters)

    def snapshot(self) -> Tuple[Filter, ...]:
        return tuple(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(tuple(self._filters))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FilterSet):
            return self._filters == other._filters
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"FilterSet(mode={self.mode.value!r}, filters={self._filters!r})"

    def _column_index(self, column: str) -> Optional[int]:
        for index, existing in enumerate(self._filters):
            if existing.column == column:
                return index
        return None

    def _commit(self, updated: List[Filter]) -> None:
        if updated == self._filters:
            return
        self._filters = updated
        self.changed.emit(self.snapshot())
