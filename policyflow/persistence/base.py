"""Base class for stores keeping the task collection in one keyed slot."""

from __future__ import annotations

import abc
import asyncio
from typing import Optional, Sequence

from ..constants import TASKS_STORAGE_KEY
from ..contracts import WorkflowTask
from .codec import decode_tasks, encode_tasks
from .repository import TaskStore


class SlotTaskStore(TaskStore, metaclass=abc.ABCMeta):
    """Stores the full task list as one JSON document under ``key``.

    Subclasses only read and write the raw slot; every save rewrites the
    whole document in a single backend operation.
    """

    def __init__(self, key: str = TASKS_STORAGE_KEY) -> None:
        self.key = key
        self._lock = asyncio.Lock()

    @abc.abstractmethod
    async def read_slot(self) -> Optional[str]:
        """Return the raw stored document, or ``None`` if nothing is stored."""
        raise NotImplementedError

    @abc.abstractmethod
    async def write_slot(self, raw: str) -> None:
        """Overwrite the stored document with ``raw``."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources (no-op by default)."""
        pass

    # ------------------------------------------------------------------
    async def load(self) -> list[WorkflowTask]:
        return decode_tasks(await self.read_slot())

    async def save_all(self, tasks: Sequence[WorkflowTask]) -> None:
        raw = encode_tasks(tasks)
        async with self._lock:
            await self.write_slot(raw)

    async def delete_one(self, task_id: str) -> bool:
        async with self._lock:
            tasks = decode_tasks(await self.read_slot())
            remaining = [task for task in tasks if task.id != task_id]
            if len(remaining) == len(tasks):
                return False
            await self.write_slot(encode_tasks(remaining))
            return True
