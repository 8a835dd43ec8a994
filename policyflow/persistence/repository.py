"""Repository abstraction for workflow task persistence."""

from __future__ import annotations

from typing import Protocol, Sequence

from ..contracts import WorkflowTask


class TaskStore(Protocol):
    """Protocol for task persistence backends.

    The store holds the whole task collection; there is no per-record update.
    """

    async def load(self) -> list[WorkflowTask]:
        """Return every stored task that passes schema validation."""

    async def save_all(self, tasks: Sequence[WorkflowTask]) -> None:
        """Replace the stored collection with ``tasks``."""

    async def delete_one(self, task_id: str) -> bool:
        """Remove one task; return ``True`` if it existed."""
