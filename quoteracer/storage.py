"""
Key-Value Storage

Client-local persisted state behind a small key-value interface.

PRINCIPLES:
===========
1. Backends report failures as StorageError, nothing else
2. Callers use read_json/write_json, which degrade to "absent"
3. Corrupt values are treated exactly like missing ones
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from pathlib import Path
import json
import logging
import sqlite3
from contextlib import contextmanager

from .errors import StorageError

logger = logging.getLogger(__name__)

CACHE_KEY = 'quote-racer-cache'
RATINGS_KEY = 'quote-racer-ratings'
SETTINGS_KEY = 'quote-racer-slideshow-settings'


class KeyValueStore:
    """Base store interface. Subclasses override all three methods."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """In-process store, used in tests and when no path is configured."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteKeyValueStore(KeyValueStore):
    """
    Persistent store backed by a single SQLite table.

    The database file and its parent directory are created lazily.
    """

    def __init__(self, db_path: Path):
        self._db_path = Path(db_path)
        self._initialized = False

    def _init_db(self, conn: sqlite3.Connection):
        conn.executescript('''
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
        ''')

    @contextmanager
    def _get_conn(self):
        """Get database connection, translating failures to StorageError."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._db_path)
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open {self._db_path}: {e}") from e

        try:
            if not self._initialized:
                self._init_db(conn)
                self._initialized = True
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self._get_conn() as conn:
            row = conn.execute('SELECT value FROM kv WHERE key = ?', (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                'INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)',
                (key, value, datetime.now(timezone.utc).isoformat()),
            )

    def delete(self, key: str) -> None:
        with self._get_conn() as conn:
            conn.execute('DELETE FROM kv WHERE key = ?', (key,))


# =============================================================================
# JSON HELPERS
# =============================================================================

def read_json(store: KeyValueStore, key: str) -> Any:
    """Decoded value under key, or None if missing, unreadable or corrupt."""
    try:
        raw = store.get(key)
    except StorageError as e:
        logger.warning("Storage read failed for %s: %s", key, e)
        return None

    if not raw:
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring corrupt value under %s", key)
        return None


def write_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Encode and store value. Returns False instead of raising on failure."""
    try:
        store.set(key, json.dumps(value))
    except StorageError as e:
        logger.warning("Storage write failed for %s: %s", key, e)
        return False
    return True
