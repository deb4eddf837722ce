"""Key-value persistence for exploration state."""

import sqlite3
from datetime import datetime
from typing import Optional

# Stable storage keys
EXPLORED_SEGMENTS_KEY = "wanderlust_explored_segments"
EXPLORED_SEGMENT_DATA_KEY = "wanderlust_explored_segment_data"
ROUTES_KEY = "wanderlust_routes"
XP_KEY = "wanderlust_xp"
ACHIEVEMENTS_KEY = "wanderlust_achievements"
EXPLORATION_DAYS_KEY = "wanderlust_exploration_days"


class KeyValueStore:
    """String-keyed store of serialized (JSON) values"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str):
        raise NotImplementedError

    def remove(self, key: str):
        raise NotImplementedError

    def close(self):
        pass


class MemoryStore(KeyValueStore):
    """Dict-backed store, used for tests and throwaway sessions"""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value

    def remove(self, key: str):
        self.data.pop(key, None)


class SQLiteStore(KeyValueStore):
    """SQLite database holding one row per key"""

    def __init__(self, db_path: str = "wanderlust.db"):
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self):
        """Create database tables"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self.conn.commit()

    def get(self, key: str) -> Optional[str]:
        cursor = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str):
        now = datetime.now().isoformat()
        self.conn.execute("""
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = ?, updated_at = ?
        """, (key, value, now, value, now))
        self.conn.commit()

    def remove(self, key: str):
        self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()

    def keys(self) -> list[str]:
        cursor = self.conn.execute("SELECT key FROM kv ORDER BY key")
        return [row[0] for row in cursor.fetchall()]

    def close(self):
        self.conn.close()
