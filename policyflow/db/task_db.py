from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel

from ..constants import TASKS_STORAGE_KEY
from ..errors import StorageError
from ..persistence.base import SlotTaskStore
from .models import StoredSlot


class TaskDB(SlotTaskStore):
    """Task store on any async SQLAlchemy database URL.

    Example URLs: ``sqlite+aiosqlite:///tasks.db``,
    ``postgresql+asyncpg://user:pw@host/db``.
    """

    def __init__(self, database_url: str, key: str = TASKS_STORAGE_KEY) -> None:
        super().__init__(key)
        connect_args = (
            {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        )
        self.engine = create_async_engine(
            database_url, echo=False, future=True, connect_args=connect_args
        )
        self._initialized = False

    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        self._initialized = True

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if not self._initialized:
            await self.init_db()
        async with AsyncSession(self.engine) as session:
            yield session

    async def read_slot(self) -> Optional[str]:
        try:
            async with self.session() as session:
                slot = await session.get(StoredSlot, self.key)
                return slot.value if slot else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {self.key}: {exc}") from exc

    async def write_slot(self, raw: str) -> None:
        slot = StoredSlot(key=self.key, value=raw, updated_at=datetime.now(timezone.utc))
        try:
            async with self.session() as session:
                await session.merge(slot)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {self.key}: {exc}") from exc

    async def close(self) -> None:
        await self.engine.dispose()
