"""Keyset page fetching against a :class:`RecordFinder`.

The paginator is stateless: callers pass the filters and the cursor of the
window they are extending, and get back a :class:`Page`. It never touches
window state, so a failed fetch leaves nothing half-written.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from recordscope.config import ROWS_CHUNK_SIZE
from recordscope.domain.models import Cursor, FetchMode, Filter, Page, Row
from recordscope.domain.repositories import RecordFinder
from recordscope.errors import FetchFailedError

LOGGER = logging.getLogger(__name__)


class Paginator:
    def __init__(self, finder: RecordFinder, page_size: int = ROWS_CHUNK_SIZE) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._finder = finder
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def fetch(
        self,
        filters: Sequence[Filter],
        cursor: Optional[Cursor] = None,
        limit: Optional[int] = None,
        mode: Optional[FetchMode] = None,
    ) -> Page:
        """Fetch one page older than *cursor* (the head page when ``None``).

        One extra row is requested to learn whether an older page exists;
        it is never returned.
        """
        limit = self._page_size if limit is None else limit
        mode_name = mode.value if mode is not None else None
        LOGGER.debug("fetch %s cursor=%s limit=%d filters=%s", mode_name, cursor, limit, filters)
        try:
            fetched = await self._finder.fetch_page(tuple(filters), cursor, limit + 1)
        except Exception as exc:
            raise FetchFailedError(f"Failed to fetch records: {exc}", mode=mode_name) from exc

        has_more = len(fetched) > limit
        rows = tuple(fetched[:limit])
        next_cursor = rows[-1].key if has_more and rows else None
        return Page(rows=rows, has_more=has_more, next_cursor=next_cursor)

    async def count(self, filters: Sequence[Filter]) -> int:
        try:
            return await self._finder.count(tuple(filters))
        except Exception as exc:
            raise FetchFailedError(f"Failed to count records: {exc}", mode="count") from exc

    async def get(self, record_id: int) -> Optional[Row]:
        """Re-read a single record, ``None`` when it no longer exists."""
        try:
            return await self._finder.get(record_id)
        except Exception as exc:
            raise FetchFailedError(f"Failed to reload record {record_id}: {exc}", mode="row") from exc
