"""PostgreSQL implementation of the task store."""

from __future__ import annotations

from typing import Optional

import asyncpg

from ..constants import TASKS_STORAGE_KEY
from ..errors import StorageError
from .base import SlotTaskStore


class PostgresTaskStore(SlotTaskStore):
    """Persist the task collection in a PostgreSQL key-value table."""

    def __init__(self, dsn: str, key: str = TASKS_STORAGE_KEY):
        super().__init__(key)
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        try:
            conn = await asyncpg.connect(self._dsn)
            if not self._initialized:
                await self._ensure_schema(conn)
                self._initialized = True
        except (asyncpg.PostgresError, OSError) as exc:
            raise StorageError(f"Cannot connect to PostgreSQL store: {exc}") from exc
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        )

    # ------------------------------------------------------------------
    async def read_slot(self) -> Optional[str]:
        conn = await self._connect()
        try:
            return await conn.fetchval(
                "SELECT value FROM kv_store WHERE key = $1", self.key
            )
        except asyncpg.PostgresError as exc:
            raise StorageError(f"Failed to read {self.key}: {exc}") from exc
        finally:
            await conn.close()

    async def write_slot(self, raw: str) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES ($1, $2, now())
                ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = now()
                """,
                self.key,
                raw,
            )
        except asyncpg.PostgresError as exc:
            raise StorageError(f"Failed to write {self.key}: {exc}") from exc
        finally:
            await conn.close()
