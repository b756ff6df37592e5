"""Record store: whole-collection load/save over SQLite or memory."""
import copy
import json
import logging
import sqlite3
from pathlib import Path

from study_rpg.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = str(Path.home() / ".study_rpg" / "ledger.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS records (
    collection TEXT NOT NULL,
    position INTEGER NOT NULL,
    id TEXT,
    body TEXT NOT NULL,
    PRIMARY KEY (collection, position)
);

CREATE INDEX IF NOT EXISTS idx_records_id ON records (collection, id);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the records table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


class SQLiteRecordStore:
    """Collections of JSON records, one row per record, ordered by position."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        try:
            init_db(db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot open store at {db_path}: {e}") from e

    def load_all(self, collection: str) -> list[dict]:
        try:
            conn = get_connection(self.db_path)
            try:
                rows = conn.execute(
                    "SELECT body FROM records WHERE collection = ? ORDER BY position",
                    (collection,),
                ).fetchall()
            finally:
                conn.close()
            return [json.loads(r["body"]) for r in rows]
        except (sqlite3.Error, ValueError) as e:
            raise PersistenceError(f"load of {collection} failed: {e}") from e

    def save_all(self, collection: str, records: list[dict]) -> None:
        try:
            conn = get_connection(self.db_path)
            try:
                with conn:
                    conn.execute("DELETE FROM records WHERE collection = ?", (collection,))
                    conn.executemany(
                        "INSERT INTO records (collection, position, id, body) VALUES (?, ?, ?, ?)",
                        [
                            (collection, i, r.get("id"), json.dumps(r, ensure_ascii=False))
                            for i, r in enumerate(records)
                        ],
                    )
            finally:
                conn.close()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise PersistenceError(f"save of {collection} failed: {e}") from e
        logger.debug("saved %d records to %s", len(records), collection)


class MemoryRecordStore:
    """In-process store; records are deep-copied on the way in and out."""

    def __init__(self, data: dict[str, list[dict]] | None = None):
        self._data = copy.deepcopy(data) if data else {}

    def load_all(self, collection: str) -> list[dict]:
        return copy.deepcopy(self._data.get(collection, []))

    def save_all(self, collection: str, records: list[dict]) -> None:
        self._data[collection] = copy.deepcopy(list(records))


def find_index(records: list[dict], record_id: str) -> int:
    """Position of the record with the given id, or -1."""
    for i, r in enumerate(records):
        if r.get("id") == record_id:
            return i
    return -1


def find(records: list[dict], record_id: str) -> dict | None:
    idx = find_index(records, record_id)
    return records[idx] if idx != -1 else None
