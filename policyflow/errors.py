"""Error taxonomy for workflow operations."""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for all errors raised by the workflow session."""


class TaskNotFoundError(WorkflowError, LookupError):
    """No task with the requested id exists."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Workflow task {task_id} not found")
        self.task_id = task_id


class ConfigurationError(WorkflowError):
    """Workflow configuration is missing or references an unknown step."""


class IllegalTransitionError(WorkflowError):
    """The requested transition is not allowed by the workflow graph or step flags."""


class UnauthorizedError(WorkflowError):
    """The acting role may not perform the requested operation."""


class TaskValidationError(WorkflowError):
    """A computed task failed schema or structural validation."""


class StorageError(WorkflowError):
    """Reading from or writing to the task store failed."""
