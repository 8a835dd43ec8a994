"""Policyflow: role-gated approval workflow engine for insurance proposals."""

from .contracts import (
    Participant,
    Role,
    WorkflowHistoryEntry,
    WorkflowStep,
    WorkflowTask,
    WorkflowTaskStatus,
)
from .errors import (
    ConfigurationError,
    IllegalTransitionError,
    StorageError,
    TaskNotFoundError,
    TaskValidationError,
    UnauthorizedError,
    WorkflowError,
)
from .persistence import get_store
from .policy import WorkflowAction
from .registry import StepConfig, WorkflowConfig, get_workflow_config
from .session import WorkflowSession, open_session

__version__ = "0.1.0"
__all__ = [
    "Participant",
    "Role",
    "WorkflowStep",
    "WorkflowTaskStatus",
    "WorkflowHistoryEntry",
    "WorkflowTask",
    "StepConfig",
    "WorkflowConfig",
    "WorkflowAction",
    "WorkflowSession",
    "open_session",
    "get_store",
    "get_workflow_config",
    "WorkflowError",
    "TaskNotFoundError",
    "ConfigurationError",
    "IllegalTransitionError",
    "UnauthorizedError",
    "TaskValidationError",
    "StorageError",
]
