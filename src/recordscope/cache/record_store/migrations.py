"""Schema creation and additive migration for the records database."""
from __future__ import annotations

import sqlite3
from typing import Set

from ...utils.logging import get_logger

logger = get_logger(__name__)


class SchemaMigrator:
    """Creates the ``records`` table and its keyset indexes.

    Columns added after the first release are appended with ``ALTER TABLE``
    so existing databases keep working without a rebuild.
    """

    @staticmethod
    def initialize_schema(conn: sqlite3.Connection) -> None:
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
        except sqlite3.OperationalError:
            logger.warning("Failed to enable WAL mode (read-only filesystem?)")

        conn.execute("PRAGMA synchronous=NORMAL;")

        # ts_ms is the writer's timestamp and drives the window order;
        # received_ms is when the sink stored the row.
        conn.execute("""
            CREATE TABLE IF NOT EXISTS records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                identity_pk INTEGER,
                kind INTEGER NOT NULL DEFAULT 0,
                ts_ms INTEGER NOT NULL,
                received_ms INTEGER,
                span_id INTEGER,
                parent_id INTEGER,
                source TEXT,
                level INTEGER,
                message TEXT NOT NULL DEFAULT '',
                fields_json TEXT NOT NULL DEFAULT '{}'
            )
        """)

        SchemaMigrator._migrate_columns(conn)
        SchemaMigrator._create_indexes(conn)

    @staticmethod
    def _migrate_columns(conn: sqlite3.Connection) -> None:
        cursor = conn.execute("PRAGMA table_info(records)")
        existing_columns: Set[str] = {row[1] for row in cursor}

        required_columns = {
            "marker_kind": "ALTER TABLE records ADD COLUMN marker_kind INTEGER",
            "marker_note": "ALTER TABLE records ADD COLUMN marker_note TEXT",
        }

        for col_name, alter_sql in required_columns.items():
            if col_name not in existing_columns:
                logger.debug("Adding column records.%s", col_name)
                conn.execute(alter_sql)

    @staticmethod
    def _create_indexes(conn: sqlite3.Connection) -> None:
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_records_ts_id ON records(ts_ms DESC, id DESC)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_records_kind_ts_id "
            "ON records(kind, ts_ms DESC, id DESC)"
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_records_level ON records(level)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_records_source ON records(source)")
