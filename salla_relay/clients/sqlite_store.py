"""SQLite-backed key-value store used for local deployments."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from salla_relay.clients.kv_backend import StoreUnavailableError


class SQLiteStore:
    """Simple key-value store using a single table keyed by ``key``."""

    name = "sqlite"

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=5.0)
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot open {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_records (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
                """
            )

    def set(self, key: str, value: Dict[str, Any]) -> None:
        data_json = json.dumps(value, sort_keys=True)
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_records (key, data)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET data = excluded.data
                    """,
                    (key, data_json),
                )
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"SQLite write failed for {key}: {exc}") from exc

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT data FROM kv_records WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"SQLite read failed for {key}: {exc}") from exc
        if not row:
            return None
        return json.loads(row["data"])

    def iter_keys(self, prefix: str) -> Iterator[str]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT key FROM kv_records WHERE substr(key, 1, ?) = ?",
                    (len(prefix), prefix),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"SQLite key scan failed: {exc}") from exc
        for row in rows:
            yield row["key"]


__all__ = ["SQLiteStore"]
