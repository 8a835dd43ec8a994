"""In-memory implementation of the task store."""

from __future__ import annotations

from typing import Dict, Optional

from ..constants import TASKS_STORAGE_KEY
from .base import SlotTaskStore


class InMemoryTaskStore(SlotTaskStore):
    """Store the serialized task collection in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts, but it goes through the same JSON
    encoding as the durable backends.
    """

    def __init__(self, key: str = TASKS_STORAGE_KEY) -> None:
        super().__init__(key)
        self._slots: Dict[str, str] = {}

    async def read_slot(self) -> Optional[str]:
        return self._slots.get(self.key)

    async def write_slot(self, raw: str) -> None:
        self._slots[self.key] = raw
