"""
SQLite medium for the media catalog.

Two tables: ``config`` holds settings (upload size, plan limits, log
levels), ``collections`` holds whole-collection text blobs such as the
serialized media list.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from mediacatalog.core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS config (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS collections (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
)

# plan_name is not seeded: without a plan the catalog is uncapped.
DEFAULT_CONFIG = {
    'max_upload_mb': '10',
    'photo_limit': '0',     # 0 = unlimited
    'video_limit': '0',
}


class KeyValueBackend(Protocol):
    """Text blobs keyed by collection name."""

    def get_text(self, key: str) -> Optional[str]:
        ...

    def set_text(self, key: str, value: str) -> None:
        ...


class MemoryBackend:
    """
    Process-local backing medium.

    ``available`` switches the medium off to model a full or disabled
    storage: reads and writes then raise StoreUnavailable.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self.available = True

    def get_text(self, key: str) -> Optional[str]:
        if not self.available:
            raise StoreUnavailable("Memory backend is disabled")
        return self._data.get(key)

    def set_text(self, key: str, value: str) -> None:
        if not self.available:
            raise StoreUnavailable("Memory backend is disabled")
        self._data[key] = value


class DatabaseManager:
    """Settings and collection blobs in one SQLite file"""

    VERSION = "1.0.0"

    def __init__(self, db_path: Optional[Path] = None):
        """
        Args:
            db_path: SQLite file. Defaults to ~/.media-catalog/catalog.db
        """
        self.db_path = Path(db_path) if db_path else Path.home() / ".media-catalog" / "catalog.db"
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def connect(self):
        """Open the file, create missing tables and seed default settings"""
        # Previews are derived on worker threads; the connection is shared under _lock.
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=30.0)
        self.conn.row_factory = sqlite3.Row
        with self._lock, self.conn:
            for statement in SCHEMA:
                self.conn.execute(statement)
            seeds = dict(DEFAULT_CONFIG, app_version=self.VERSION)
            self.conn.executemany(
                "INSERT OR IGNORE INTO config (key, value) VALUES (?, ?)",
                seeds.items(),
            )
        logger.debug(f"Opened catalog database {self.db_path}")

    # ------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------

    def get_config(self, key: str, default: Any = None) -> Any:
        """Stored setting as text, or ``default`` when it was never set"""
        row = self._fetch("SELECT value FROM config WHERE key = ?", key)
        return row['value'] if row else default

    def set_config(self, key: str, value: Any):
        self._write(
            "INSERT OR REPLACE INTO config (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
            key, str(value),
        )

    def get_all_config(self) -> Dict[str, str]:
        rows = self._fetch_all("SELECT key, value FROM config")
        return {row['key']: row['value'] for row in rows}

    # ------------------------------------------------------------
    # Key-value collections
    # ------------------------------------------------------------

    def get_text(self, key: str) -> Optional[str]:
        """Blob stored under ``key``; None when it was never written."""
        row = self._fetch("SELECT value FROM collections WHERE key = ?", key)
        return row['value'] if row else None

    def set_text(self, key: str, value: str) -> None:
        """Overwrite the blob for ``key``; a failed write leaves the old one in place."""
        self._write(
            "INSERT OR REPLACE INTO collections (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)",
            key, value,
        )

    # ------------------------------------------------------------

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StoreUnavailable("Database is not connected")
        return self.conn

    def _fetch(self, sql: str, *params) -> Optional[sqlite3.Row]:
        rows = self._fetch_all(sql, *params)
        return rows[0] if rows else None

    def _fetch_all(self, sql: str, *params) -> List[sqlite3.Row]:
        conn = self._connection()
        try:
            with self._lock:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Read from {self.db_path.name} failed: {e}")
            raise StoreUnavailable(str(e)) from e

    def _write(self, sql: str, *params) -> None:
        conn = self._connection()
        try:
            with self._lock, conn:
                conn.execute(sql, params)
        except sqlite3.Error as e:
            logger.error(f"Write to {self.db_path.name} failed: {e}")
            raise StoreUnavailable(str(e)) from e

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None
