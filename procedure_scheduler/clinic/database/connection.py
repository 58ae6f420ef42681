"""Database connection manager for SQLite."""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from procedure_scheduler.config import DB_TIMEOUT_SECONDS, get_db_path

from .errors import StorageError
from .schema import SCHEMA

logger = logging.getLogger(__name__)


def get_connection() -> sqlite3.Connection:
    """Get a database connection with row factory enabled.

    The connection is in autocommit mode; multi-statement units of work go
    through ``transaction()``.
    """
    try:
        conn = sqlite3.connect(
            get_db_path(),
            timeout=DB_TIMEOUT_SECONDS,
            isolation_level=None,
            check_same_thread=False,
        )
    except sqlite3.Error as e:
        raise StorageError(f"Could not open database: {e}") from e
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_database() -> None:
    """Initialize the database with schema."""
    conn = get_connection()
    try:
        conn.executescript(SCHEMA)
    except sqlite3.Error as e:
        raise StorageError(f"Could not initialize schema: {e}") from e
    finally:
        conn.close()


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """Run a unit of work inside one write transaction.

    ``BEGIN IMMEDIATE`` takes SQLite's reserved lock up front, so concurrent
    writers are serialized and the reads made inside the block cannot go
    stale before the writes commit. Any exception rolls everything back.
    """
    conn = get_connection()
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.execute("COMMIT")
    except sqlite3.Error as e:
        _rollback(conn)
        logger.exception("Transaction aborted")
        raise StorageError(f"Transaction aborted: {e}") from e
    except BaseException:
        _rollback(conn)
        raise
    finally:
        conn.close()


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.exception("Rollback failed")
