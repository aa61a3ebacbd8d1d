"""Pure reconciliation of fetched pages into a :class:`WindowState`.

Every function returns a new state and never mutates its inputs. The window
store calls them only after a fetch has passed the generation check, so they
are the single writer of ``rows``.
"""

from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, Optional, Tuple

from recordscope.domain.models import Page, Row, WindowState


def dedup_by_id(rows: Iterable[Row]) -> Tuple[Row, ...]:
    """Keep the first occurrence of each id, preserving order."""
    seen: set[int] = set()
    unique = []
    for row in rows:
        if row.id in seen:
            continue
        seen.add(row.id)
        unique.append(row)
    return tuple(unique)


def mark_added(previous: Tuple[Row, ...], fresh: Iterable[Row], now_ms: int) -> Tuple[Row, ...]:
    """Stamp ``added_at`` on rows that are newer than the previous head.

    A fresh row is new when its id and timestamp are both past the head's.
    Rows that were already in *previous* keep the mark they had there, so a
    highlight does not restart on every merge. With no previous head every
    row counts as new.
    """
    head: Optional[Row] = previous[0] if previous else None
    earlier: Dict[int, Optional[int]] = {row.id: row.added_at for row in previous}

    marked = []
    for row in fresh:
        if head is None or (row.id > head.id and row.timestamp_ms >= head.timestamp_ms):
            added_at: Optional[int] = now_ms
        else:
            added_at = earlier.get(row.id, row.added_at)
        if added_at != row.added_at:
            row = dataclasses.replace(row, added_at=added_at)
        marked.append(row)
    return tuple(marked)


def replace(state: WindowState, page: Page) -> WindowState:
    return dataclasses.replace(
        state,
        rows=page.rows,
        has_more=page.has_more,
        cursor=page.next_cursor,
        pending_new=0,
        loading=False,
        error=None,
        loaded=True,
    )


def append(state: WindowState, page: Page) -> WindowState:
    if not state.has_more or state.cursor is None:
        return dataclasses.replace(state, loading=False)
    rows = dedup_by_id(state.rows + page.rows)
    return dataclasses.replace(
        state,
        rows=rows,
        has_more=page.has_more,
        cursor=page.next_cursor,
        loading=False,
        error=None,
        loaded=True,
    )


def merge(state: WindowState, page: Page, now_ms: int) -> WindowState:
    """Swap in a freshly fetched head page, marking rows newer than the old head."""
    rows = mark_added(state.rows, page.rows, now_ms)
    return dataclasses.replace(
        state,
        rows=rows,
        has_more=page.has_more,
        cursor=page.next_cursor,
        pending_new=0,
        loading=False,
        error=None,
        loaded=True,
    )


def update_row(state: WindowState, row: Row) -> WindowState:
    """Replace the row with the same id in place, keeping its ``added_at``."""
    for index, current in enumerate(state.rows):
        if current.id == row.id:
            updated = dataclasses.replace(row, added_at=current.added_at)
            rows = state.rows[:index] + (updated,) + state.rows[index + 1:]
            return dataclasses.replace(state, rows=rows)
    return state


__all__ = ["append", "dedup_by_id", "mark_added", "merge", "replace", "update_row"]
