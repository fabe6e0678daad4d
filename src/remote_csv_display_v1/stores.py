from __future__ import annotations

import json
import sqlite3
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple


class TtlCache(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    def delete_by_prefix(self, prefix: str) -> int: ...

    def keys(self) -> List[str]: ...


class OptionStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete_by_prefix(self, prefix: str) -> int: ...

    def keys(self) -> List[str]: ...


class InMemoryTtlCache:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        self._prune(self._clock())
        cached = self._entries.get(key)
        if cached is None:
            return None
        return cached[1]

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        now = self._clock()
        self._prune(now)
        self._entries[key] = (now + ttl_seconds, value)

    def delete_by_prefix(self, prefix: str) -> int:
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            self._entries.pop(key, None)
        return len(doomed)

    def keys(self) -> List[str]:
        self._prune(self._clock())
        return sorted(self._entries)

    def _prune(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            self._entries.pop(key, None)


class InMemoryOptionStore:
    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete_by_prefix(self, prefix: str) -> int:
        doomed = [key for key in self._values if key.startswith(prefix)]
        for key in doomed:
            self._values.pop(key, None)
        return len(doomed)

    def keys(self) -> List[str]:
        return sorted(self._values)


class SqliteOptionStore:
    """Persistent option store; values are kept as JSON text."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._ensure_schema()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            row = self._conn.execute("SELECT value_json FROM options WHERE name = ?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row[0])

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO options(name, value_json) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET value_json = excluded.value_json
                """,
                (key, encoded),
            )
            self._conn.commit()

    def delete_by_prefix(self, prefix: str) -> int:
        with self._lock:
            cursor = self._conn.execute("DELETE FROM options WHERE substr(name, 1, ?) = ?", (len(prefix), prefix))
            self._conn.commit()
        return cursor.rowcount

    def keys(self) -> List[str]:
        with self._lock:
            rows = self._conn.execute("SELECT name FROM options ORDER BY name").fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _ensure_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS options (
                name TEXT PRIMARY KEY,
                value_json TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

