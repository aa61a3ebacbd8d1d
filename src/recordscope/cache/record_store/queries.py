"""SQL construction for windowed record reads.

All values travel as parameters. Column names come from a fixed whitelist,
never from caller input.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...config import BASE_RECORD_KIND, FILTERABLE_COLUMNS
from ...domain.models import Cursor, Filter
from ...errors import InvalidFilterError

RECORD_COLUMNS: Tuple[str, ...] = (
    "id",
    "ts_ms",
    "kind",
    "received_ms",
    "source",
    "level",
    "message",
    "fields_json",
    "marker_kind",
    "marker_note",
)


class QueryBuilder:
    """Builds the page and count statements for the records table."""

    @staticmethod
    def build_filter_clauses(filters: Sequence[Filter]) -> Tuple[List[str], List[Any]]:
        """Group filters by column: OR inside a column, AND across columns.

        A ``None`` value becomes ``column IS ?`` so it matches NULL.
        """
        where_clauses: List[str] = []
        params: List[Any] = []

        groups: Dict[str, List[Any]] = {}
        for item in filters:
            if item.column not in FILTERABLE_COLUMNS:
                raise InvalidFilterError(f"Cannot filter on {item.column!r}")
            groups.setdefault(item.column, []).append(item.value)

        for column, values in groups.items():
            parts = []
            for value in values:
                parts.append(f"{column} IS ?" if value is None else f"{column} = ?")
                params.append(value)
            clause = " OR ".join(parts)
            where_clauses.append(f"({clause})" if len(parts) > 1 else clause)

        return where_clauses, params

    @staticmethod
    def build_cursor_filter(cursor: Optional[Cursor]) -> Tuple[List[str], List[Any]]:
        if cursor is None:
            return [], []
        # Row value comparison lets SQLite seek on the (ts_ms, id) index.
        return ["(ts_ms, id) < (?, ?)"], [cursor.timestamp_ms, cursor.id]

    @staticmethod
    def build_where(
        filters: Sequence[Filter], cursor: Optional[Cursor] = None
    ) -> Tuple[str, List[Any]]:
        where_clauses: List[str] = ["kind = ?"]
        params: List[Any] = [BASE_RECORD_KIND]

        filter_where, filter_params = QueryBuilder.build_filter_clauses(filters)
        where_clauses.extend(filter_where)
        params.extend(filter_params)

        cursor_where, cursor_params = QueryBuilder.build_cursor_filter(cursor)
        where_clauses.extend(cursor_where)
        params.extend(cursor_params)

        return " WHERE " + " AND ".join(where_clauses), params

    @staticmethod
    def build_page_query(
        filters: Sequence[Filter],
        cursor: Optional[Cursor] = None,
        limit: Optional[int] = None,
    ) -> Tuple[str, List[Any]]:
        where, params = QueryBuilder.build_where(filters, cursor)
        query = f"SELECT {', '.join(RECORD_COLUMNS)} FROM records{where}"
        query += " ORDER BY ts_ms DESC, id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        return query, params

    @staticmethod
    def build_count_query(filters: Sequence[Filter]) -> Tuple[str, List[Any]]:
        where, params = QueryBuilder.build_where(filters)
        return f"SELECT COUNT(*) FROM records{where}", params
