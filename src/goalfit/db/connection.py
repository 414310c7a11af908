"""SQLite access for profiles, daily goals and measurement logs.

The CLI reads through the connection directly; the profile orchestrator
reaches it through ``SQLiteRecordStore`` from worker threads. Neither holds
a connection open between operations.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from goalfit.db.schema import get_schema_sql


class DatabaseConnection:
    """Opens a short-lived sqlite3 connection per unit of work.

    A fresh connection per ``get_connection()`` call keeps the object safe
    to share with ``asyncio.to_thread`` workers, since sqlite3 connections
    may not cross threads.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and rolls back on error.

        Rows come back as ``sqlite3.Row`` so queries can read columns by name:

            with db.get_connection() as conn:
                record = ProfileQueries.get_profile(conn, user_id)
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        """Create the goalfit tables and indexes (idempotent)."""
        with self.get_connection() as conn:
            conn.executescript(get_schema_sql())


_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Shared connection for the configured database path."""
    global _db
    if _db is None:
        from goalfit.config import get_settings

        _db = DatabaseConnection(get_settings().database.path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Replace the shared connection (None goes back to the configured path)."""
    global _db
    _db = db
