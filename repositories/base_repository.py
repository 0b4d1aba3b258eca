"""
Shared SQLite plumbing for the predictor repositories.
"""

import logging
import sqlite3
from abc import ABC
from contextlib import contextmanager

from infrastructure.schema_manager import SchemaManager

logger = logging.getLogger("predictor_bot.repositories")


class BaseRepository(ABC):
    """
    Every repository owns a db_path and opens a short-lived connection per call.

    The schema is created lazily the first time any repository touches a path.
    """

    _initialized_db_paths: set[str] = set()

    def __init__(self, db_path: str):
        self.db_path = db_path
        if db_path not in BaseRepository._initialized_db_paths:
            SchemaManager(db_path).initialize()
            BaseRepository._initialized_db_paths.add(db_path)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout=5000")
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _transaction(self, begin: str | None):
        conn = self._open()
        try:
            if begin:
                conn.execute(begin)
            yield conn
            conn.commit()
        except Exception:
            logger.debug(f"Rolling back transaction on {self.db_path}")
            conn.rollback()
            raise
        finally:
            conn.close()

    def connection(self):
        """Plain connection scope: commit on success, rollback on error, always close."""
        return self._transaction(None)

    def atomic_transaction(self):
        """
        Write scope that takes the database write lock up front.

        A read-compute-write sequence (pool snapshot, odds, pool increment)
        inside this block cannot interleave with another writer:

            with self.atomic_transaction() as conn:
                row = conn.execute("SELECT ...").fetchone()
                conn.execute("UPDATE ...")
        """
        return self._transaction("BEGIN IMMEDIATE")
