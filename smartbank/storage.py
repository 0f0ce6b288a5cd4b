"""
Settings Storage Module

Key/value settings store with upsert-by-key semantics: an in-memory
implementation for testing and an SQLite implementation for persistence.
Values are opaque strings; callers encrypt them first when needed.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union
import sqlite3
import threading
from pathlib import Path

from .logging_config import get_logger, log_action

logger = get_logger(__name__)

SETTINGS_TABLE = "settings"


class SettingsStore(ABC):
    """Abstract interface for settings backends"""

    @abstractmethod
    def save_setting(self, key: str, value: str) -> None:
        """Insert or replace a setting (last write wins)"""
        pass

    @abstractmethod
    def load_setting(self, key: str) -> Optional[str]:
        """Load a setting, None when absent"""
        pass

    @abstractmethod
    def delete_setting(self, key: str) -> bool:
        """Delete a setting"""
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys, sorted"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def __enter__(self) -> 'SettingsStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("Setting key must be a non-empty string")


class InMemorySettingsStore(SettingsStore):
    """In-memory settings store for testing"""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()

    def save_setting(self, key: str, value: str) -> None:
        _check_key(key)
        with self._lock:
            self._data[key] = str(value)

    def load_setting(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def delete_setting(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLiteSettingsStore(SettingsStore):
    """SQLite settings store: one table mapping string keys to string values"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._lock = threading.RLock()
        self._ensure_table()

    def _ensure_table(self) -> None:
        """Create the settings table if missing (safe to call repeatedly)"""
        with self._lock:
            self._connection.execute(
                f"CREATE TABLE IF NOT EXISTS {SETTINGS_TABLE} (key TEXT PRIMARY KEY, value TEXT)"
            )
            self._connection.commit()

    def _conn(self) -> sqlite3.Connection:
        if self._connection is None:
            raise sqlite3.ProgrammingError("Settings store is closed")
        return self._connection

    def save_setting(self, key: str, value: str) -> None:
        """Upsert a setting"""
        _check_key(key)
        with self._lock:
            conn = self._conn()
            conn.execute(
                f"REPLACE INTO {SETTINGS_TABLE} (key, value) VALUES (?, ?)",
                (key, str(value))
            )
            conn.commit()
        log_action(logger, "debug", "Setting saved", action="save_setting", resource=key)

    def load_setting(self, key: str) -> Optional[str]:
        with self._lock:
            cursor = self._conn().execute(
                f"SELECT value FROM {SETTINGS_TABLE} WHERE key = ?", (key,)
            )
            row = cursor.fetchone()
            return row[0] if row else None

    def delete_setting(self, key: str) -> bool:
        with self._lock:
            conn = self._conn()
            cursor = conn.execute(f"DELETE FROM {SETTINGS_TABLE} WHERE key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        with self._lock:
            cursor = self._conn().execute(f"SELECT key FROM {SETTINGS_TABLE} ORDER BY key")
            return [row[0] for row in cursor.fetchall()]

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
