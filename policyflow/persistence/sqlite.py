"""SQLite implementation of the task store."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..constants import TASKS_STORAGE_KEY
from ..errors import StorageError
from .base import SlotTaskStore


class SQLiteTaskStore(SlotTaskStore):
    """Persist the task collection in a SQLite key-value table."""

    def __init__(self, db_path: str | Path, key: str = TASKS_STORAGE_KEY):
        super().__init__(key)
        self.db_path = str(db_path)
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open SQLite store {self.db_path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    # ------------------------------------------------------------------
    # Slot API
    async def read_slot(self) -> Optional[str]:
        try:
            row = await asyncio.to_thread(
                self._fetchone, "SELECT value FROM kv_store WHERE key = ?", self.key
            )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {self.key} from {self.db_path}: {exc}") from exc
        return row["value"] if row else None

    async def write_slot(self, raw: str) -> None:
        try:
            await asyncio.to_thread(
                self._execute,
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                self.key,
                raw,
                datetime.now(timezone.utc).isoformat(),
            )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write {self.key} to {self.db_path}: {exc}") from exc

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)
