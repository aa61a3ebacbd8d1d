from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from ...errors import FetchFailedError
from .core import Cursor, Row


class FetchMode(str, enum.Enum):
    REPLACE = "replace"
    APPEND = "append"
    MERGE = "merge"


@dataclass(frozen=True)
class Page:
    """One page of rows as returned by the paginator."""

    rows: Tuple[Row, ...] = ()
    has_more: bool = False
    next_cursor: Optional[Cursor] = None


@dataclass(frozen=True)
class ViewportPosition:
    at_top: bool = True
    at_bottom: bool = True


@dataclass(frozen=True)
class WindowState:
    """Immutable snapshot of the visible window.

    ``rows`` are ordered by descending ``(timestamp_ms, id)``. ``cursor`` is
    set only while ``has_more`` holds and then equals the key of the last row.
    """

    rows: Tuple[Row, ...] = ()
    has_more: bool = False
    cursor: Optional[Cursor] = None
    loading: bool = False
    pending_new: int = 0
    error: Optional[FetchFailedError] = None
    loaded: bool = False

    @property
    def head(self) -> Optional[Row]:
        return self.rows[0] if self.rows else None

    def __len__(self) -> int:
        return len(self.rows)

    def row_ids(self) -> list[int]:
        return [row.id for row in self.rows]
