import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import List, Optional

from .config import settings
from .models import ProgressSnapshot, TestResult
from .projection import snapshot_to_result

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A progress snapshot or test result could not be read or written."""


def default_db_path() -> str:
    return os.path.join(settings.DB_DIR, settings.DB_FILE)


def get_db_connection(db_path: Optional[str] = None):
    """Establishes a connection to the SQLite database."""
    conn = sqlite3.connect(db_path or default_db_path())
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_path: Optional[str] = None):
    """Creates the log, progress and result tables if they don't exist."""
    conn = get_db_connection(db_path)
    with conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                level TEXT,
                message TEXT
            );
            CREATE TABLE IF NOT EXISTS progress (
                vocabulary_id INTEGER PRIMARY KEY,
                payload TEXT NOT NULL,
                saved_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
            CREATE TABLE IF NOT EXISTS results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                vocabulary_id INTEGER NOT NULL,
                updated_at TEXT NOT NULL,
                payload TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_results_vocabulary
                ON results (vocabulary_id, updated_at);
        """
        )
    conn.close()


def init_db(db_path: Optional[str] = None):
    """Initializes the database and creates necessary tables."""
    db_path = db_path or default_db_path()
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    create_tables(db_path)


class TestStore:
    """Persists in-progress snapshots (one per vocabulary) and test results."""

    __test__ = False

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or default_db_path()

    @contextmanager
    def _connection(self):
        try:
            conn = get_db_connection(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open {self.db_path}: {e}") from e
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Storage failure on {self.db_path}: {e}")
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    def save_progress(self, snapshot: ProgressSnapshot):
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO progress (vocabulary_id, payload) VALUES (?, ?) "
                "ON CONFLICT(vocabulary_id) DO UPDATE SET "
                "payload = excluded.payload, saved_at = CURRENT_TIMESTAMP",
                (snapshot.vocabulary_id, snapshot.model_dump_json(by_alias=True)),
            )

    def load_progress(self, vocabulary_id: int) -> Optional[ProgressSnapshot]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT payload FROM progress WHERE vocabulary_id = ?",
                (vocabulary_id,),
            ).fetchone()
        if row is None:
            return None
        return ProgressSnapshot.model_validate_json(row["payload"])

    def delete_progress(self, vocabulary_id: int):
        with self._connection() as conn:
            conn.execute("DELETE FROM progress WHERE vocabulary_id = ?", (vocabulary_id,))

    def append_result(self, result: TestResult):
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO results (vocabulary_id, updated_at, payload) VALUES (?, ?, ?)",
                (
                    result.vocabulary_id,
                    result.updated_at.isoformat(),
                    result.model_dump_json(by_alias=True),
                ),
            )
        logger.info(f"Saved test result for vocabulary {result.vocabulary_id}")

    def list_results(self, vocabulary_id: int) -> List[TestResult]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT payload FROM results WHERE vocabulary_id = ? "
                "ORDER BY updated_at DESC, id DESC",
                (vocabulary_id,),
            ).fetchall()
        return [TestResult.model_validate_json(row["payload"]) for row in rows]

    def finalize_progress(self, vocabulary_id: int) -> Optional[TestResult]:
        """
        Turns a live snapshot into a done result so that abandoned progress is
        kept in the history instead of being lost.
        """
        snapshot = self.load_progress(vocabulary_id)
        if snapshot is None:
            return None
        result = snapshot_to_result(snapshot)
        self.append_result(result)
        self.delete_progress(vocabulary_id)
        return result
