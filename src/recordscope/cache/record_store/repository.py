"""Record persistence on top of SQLite.

The repository is synchronous; :class:`~recordscope.application.services.
record_source.SqliteRecordSource` moves its calls off the event loop.
"""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ...config import BASE_RECORD_KIND
from ...domain.models import Cursor, Filter, Level, Row
from ...errors import DatabaseError, RecordNotFoundError
from ...utils.clock import now_ms
from ...utils.logging import get_logger
from .engine import DatabaseManager
from .migrations import SchemaMigrator
from .queries import RECORD_COLUMNS, QueryBuilder

logger = get_logger(__name__)

_INSERT_COLUMNS = (
    "identity_pk",
    "kind",
    "ts_ms",
    "received_ms",
    "span_id",
    "parent_id",
    "source",
    "level",
    "message",
    "fields_json",
)


class RecordRepository:
    """CRUD and keyset reads for the ``records`` table."""

    def __init__(self, db_path: Path, clock: Callable[[], int] = now_ms):
        self.path = Path(db_path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._db_manager = DatabaseManager(self.path)
        self._init_db()

    def _init_db(self) -> None:
        try:
            with self._db_manager.transaction() as conn:
                SchemaMigrator.initialize_schema(conn)
        except sqlite3.DatabaseError as exc:
            raise DatabaseError(f"Cannot initialise records database {self.path}: {exc}") from exc

    def transaction(self):
        """Batch several writes into one transaction.

        Example:
            >>> with repo.transaction():
            ...     repo.append_records([...])
            ...     repo.set_marker(7, MarkerKind.NOTE, "look here")
        """
        return self._db_manager.transaction()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def append_records(self, records: Iterable[Mapping[str, Any]]) -> List[int]:
        """Insert *records* and return their new ids in insertion order."""
        ids: List[int] = []
        with self.transaction() as conn:
            placeholders = ", ".join(["?"] * len(_INSERT_COLUMNS))
            query = f"INSERT INTO records ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})"
            for record in records:
                cursor = conn.execute(query, self._record_to_db_params(record))
                ids.append(int(cursor.lastrowid))
        if ids:
            logger.debug("Appended %d records (ids %d..%d)", len(ids), ids[0], ids[-1])
        return ids

    def set_marker(self, record_id: int, kind: Optional[int], note: Optional[str]) -> None:
        """Attach (or clear, with ``kind=None``) a marker on a record."""
        with self.transaction() as conn:
            cursor = conn.execute(
                "UPDATE records SET marker_kind = ?, marker_note = ? WHERE id = ?",
                (None if kind is None else int(kind), note if kind is not None else None, record_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"No record with id {record_id}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def fetch_rows(
        self,
        filters: Sequence[Filter] = (),
        cursor: Optional[Cursor] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Rows matching *filters* strictly older than *cursor*, newest first."""
        query, params = QueryBuilder.build_page_query(filters, cursor, limit)
        with self._db_manager.reading() as conn:
            return [self._db_row_to_record(db_row) for db_row in conn.execute(query, params)]

    def count(self, filters: Sequence[Filter] = ()) -> int:
        query, params = QueryBuilder.build_count_query(filters)
        with self._db_manager.reading() as conn:
            (total,) = conn.execute(query, params).fetchone()
        return int(total)

    def get(self, record_id: int) -> Optional[Row]:
        query = f"SELECT {', '.join(RECORD_COLUMNS)} FROM records WHERE id = ?"
        with self._db_manager.reading() as conn:
            db_row = conn.execute(query, (record_id,)).fetchone()
        return self._db_row_to_record(db_row) if db_row is not None else None

    def max_id(self) -> int:
        """Highest record id, ``0`` for an empty table."""
        with self._db_manager.reading() as conn:
            (value,) = conn.execute("SELECT COALESCE(MAX(id), 0) FROM records").fetchone()
        return int(value)

    def close(self) -> None:
        self._db_manager.close()

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    def _record_to_db_params(self, record: Mapping[str, Any]) -> List[Any]:
        ts_ms = record.get("ts_ms", record.get("timestamp_ms"))
        if ts_ms is None:
            raise ValueError(f"Record is missing a timestamp: {dict(record)!r}")

        level = Level.parse(record.get("level"))
        fields = record.get("fields", record.get("fields_json", "{}"))
        if not isinstance(fields, str):
            fields = json.dumps(fields, ensure_ascii=False, sort_keys=True)

        received_ms = record.get("received_ms")
        values: Dict[str, Any] = {
            "identity_pk": record.get("identity_pk"),
            "kind": int(record.get("kind", BASE_RECORD_KIND)),
            "ts_ms": int(ts_ms),
            "received_ms": int(received_ms) if received_ms is not None else self._clock(),
            "span_id": record.get("span_id"),
            "parent_id": record.get("parent_id"),
            "source": record.get("source"),
            "level": None if level is None else int(level),
            "message": str(record.get("message", "")),
            "fields_json": fields,
        }
        return [values[column] for column in _INSERT_COLUMNS]

    @staticmethod
    def _db_row_to_record(db_row: sqlite3.Row) -> Row:
        return Row(
            id=db_row["id"],
            timestamp_ms=db_row["ts_ms"],
            kind=db_row["kind"],
            received_ms=db_row["received_ms"],
            source=db_row["source"],
            level=db_row["level"],
            message=db_row["message"],
            fields=db_row["fields_json"],
            marker_kind=db_row["marker_kind"],
            marker_note=db_row["marker_note"],
        )
