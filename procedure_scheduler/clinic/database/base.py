"""Shared plumbing for repositories."""

import sqlite3
from contextlib import contextmanager
from typing import Iterator

from .connection import get_connection
from .errors import DuplicateRecordError, StorageError


class BaseRepository:
    """Runs queries on a shared connection, or on a fresh one per call.

    Repositories built inside ``transaction()`` receive its connection so all
    their reads and writes belong to that transaction.
    """

    def __init__(self, conn: sqlite3.Connection | None = None):
        self._conn = conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        conn = self._conn if self._conn is not None else get_connection()
        try:
            yield conn.cursor()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateRecordError(str(e)) from e
            raise StorageError(str(e)) from e
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            if self._conn is None:
                conn.close()

    def _count_bookings(self, cursor: sqlite3.Cursor, column: str, record_id: str) -> int:
        cursor.execute(f"SELECT COUNT(*) FROM bookings WHERE {column} = ?", (record_id,))
        return cursor.fetchone()[0]

    def _count_references(self, cursor: sqlite3.Cursor, column: str, record_id: str) -> int:
        """Bookings plus history records pointing at a patient or doctor."""
        cursor.execute(f"SELECT COUNT(*) FROM op_history WHERE {column} = ?", (record_id,))
        return self._count_bookings(cursor, column, record_id) + cursor.fetchone()[0]
