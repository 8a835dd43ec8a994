"""Persistence layer for workflow tasks."""

from __future__ import annotations

import os
from typing import Optional

from ..config import PolicyflowConfig, load_config
from .base import SlotTaskStore
from .codec import decode_tasks, encode_tasks
from .inmemory import InMemoryTaskStore
from .repository import TaskStore
from .sqlite import SQLiteTaskStore

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresTaskStore
except Exception:  # pragma: no cover - optional dependency
    PostgresTaskStore = None  # type: ignore

_store_instance: TaskStore | None = None


def get_store(
    database_url: Optional[str] = None, config: Optional[PolicyflowConfig] = None
) -> TaskStore:
    """Factory function to obtain a task store.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``POLICYFLOW_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory store is returned.

    URLs with a driver suffix (``sqlite+aiosqlite://``,
    ``postgresql+asyncpg://``) are served through SQLAlchemy.
    """

    global _store_instance
    if _store_instance is not None and database_url is None and config is None:
        return _store_instance

    config = config or load_config()
    key = config.storage_key
    database_url = (
        database_url
        or os.getenv("POLICYFLOW_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )

    if not database_url:
        _store_instance = InMemoryTaskStore(key=key)
        return _store_instance

    scheme = database_url.split("://", 1)[0]
    if "+" in scheme:
        from ..db import TaskDB

        _store_instance = TaskDB(database_url, key=key)
    elif scheme == "sqlite":
        path = database_url.replace("sqlite://", "", 1)
        _store_instance = SQLiteTaskStore(path, key=key)
    elif scheme in ("postgres", "postgresql"):
        if PostgresTaskStore is None:
            raise RuntimeError("Postgres support not available")
        _store_instance = PostgresTaskStore(database_url, key=key)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _store_instance


__all__ = [
    "TaskStore",
    "SlotTaskStore",
    "InMemoryTaskStore",
    "SQLiteTaskStore",
    "PostgresTaskStore",
    "encode_tasks",
    "decode_tasks",
    "get_store",
]
