from .models import StoredSlot
from .task_db import TaskDB

__all__ = [
    "StoredSlot",
    "TaskDB",
]
