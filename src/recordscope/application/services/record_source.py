"""Async adapter exposing :class:`RecordRepository` as a record source."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from recordscope.cache.record_store import RecordRepository
from recordscope.domain.models import Cursor, Filter, Row
from recordscope.domain.repositories import RecordSource


class SqliteRecordSource(RecordSource):
    """Runs the blocking repository calls in a worker thread."""

    def __init__(self, repository: RecordRepository) -> None:
        self._repository = repository

    @property
    def repository(self) -> RecordRepository:
        return self._repository

    async def fetch_page(
        self, filters: Sequence[Filter], cursor: Optional[Cursor], limit: int
    ) -> List[Row]:
        return await asyncio.to_thread(self._repository.fetch_rows, filters, cursor, limit)

    async def count(self, filters: Sequence[Filter]) -> int:
        return await asyncio.to_thread(self._repository.count, filters)

    async def get(self, record_id: int) -> Optional[Row]:
        return await asyncio.to_thread(self._repository.get, record_id)

    async def set_marker(self, record_id: int, kind: Optional[int], note: Optional[str]) -> None:
        await asyncio.to_thread(self._repository.set_marker, record_id, kind, note)
