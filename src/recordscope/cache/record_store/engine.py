"""SQLite connection and transaction management for the record store."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ...errors import DatabaseError
from ...utils.logging import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """Opens connections to the records database.

    Reads use a short-lived connection each; :meth:`transaction` holds one
    connection for the duration of the block and commits or rolls back on
    exit. Nested ``transaction`` blocks share the outer connection and do not
    get a savepoint.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Cannot open {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """Return the active transaction connection or a fresh one."""
        if self._conn:
            return self._conn
        return self.connect()

    def owns(self, conn: sqlite3.Connection) -> bool:
        return conn is self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        if self._conn:
            yield self._conn
            return

        self._conn = self.connect()
        try:
            with self._conn:
                yield self._conn
        finally:
            self._conn.close()
            self._conn = None

    @contextmanager
    def reading(self) -> Iterator[sqlite3.Connection]:
        """Connection for a read; closed afterwards unless a transaction owns it."""
        conn = self.get_connection()
        try:
            yield conn
        finally:
            if not self.owns(conn):
                conn.close()

    def close(self) -> None:
        if self._conn:
            try:
                self._conn.close()
            finally:
                self._conn = None
