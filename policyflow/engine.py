"""Pure transition functions for workflow tasks.

Each function takes a task value and returns a new one with exactly one
history entry appended. No function here checks whether a transition is
legal; callers consult :mod:`policyflow.policy` first.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from .contracts import (
    WorkflowHistoryEntry,
    WorkflowStep,
    WorkflowTask,
    WorkflowTaskStatus,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_history_entry(
    step: WorkflowStep,
    assigned_to: str,
    assigned_by: str,
    comments: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> WorkflowHistoryEntry:
    return WorkflowHistoryEntry(
        step=step,
        assigned_to=assigned_to,
        assigned_by=assigned_by,
        timestamp=now or utcnow(),
        comments=comments,
    )


def _append(task: WorkflowTask, entry: WorkflowHistoryEntry, **changes: Any) -> WorkflowTask:
    return task.model_copy(
        update={
            **changes,
            "history": (*task.history, entry),
            "updated_at": entry.timestamp,
        }
    )


def new_task(
    task_id: str,
    proposal_id: str,
    step: WorkflowStep,
    assigned_to: str,
    assigned_by: str,
    comments: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> WorkflowTask:
    """Build a fresh task sitting at ``step`` with a single history entry."""
    entry = create_history_entry(step, assigned_to, assigned_by, comments, now=now)
    return WorkflowTask(
        id=task_id,
        proposal_id=proposal_id,
        current_step=step,
        assigned_to=assigned_to,
        assigned_by=assigned_by,
        status=WorkflowTaskStatus.IN_PROGRESS,
        history=(entry,),
        created_at=entry.timestamp,
        updated_at=entry.timestamp,
    )


def advance_task(
    task: WorkflowTask,
    next_step: WorkflowStep,
    assigned_to: str,
    assigned_by: str,
    comments: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> WorkflowTask:
    """Move ``task`` forward to ``next_step``."""
    entry = create_history_entry(next_step, assigned_to, assigned_by, comments, now=now)
    return _append(
        task,
        entry,
        current_step=next_step,
        assigned_to=assigned_to,
        assigned_by=assigned_by,
        status=WorkflowTaskStatus.IN_PROGRESS,
    )


def reassign_task(
    task: WorkflowTask,
    new_assignee: str,
    assigned_by: str,
    comments: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> WorkflowTask:
    """Hand ``task`` to another user within the same step.

    Always records an entry, even if ``new_assignee`` already holds the task.
    """
    entry = create_history_entry(
        task.current_step, new_assignee, assigned_by, comments, now=now
    )
    return _append(task, entry, assigned_to=new_assignee, assigned_by=assigned_by)


def send_back_task(
    task: WorkflowTask,
    previous_step: WorkflowStep,
    assigned_to: str,
    assigned_by: str,
    comments: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> WorkflowTask:
    entry = create_history_entry(
        previous_step, assigned_to, assigned_by, comments, now=now
    )
    return _append(
        task,
        entry,
        current_step=previous_step,
        assigned_to=assigned_to,
        assigned_by=assigned_by,
        status=WorkflowTaskStatus.SENT_BACK,
    )


def complete_task(
    task: WorkflowTask,
    completed_by: str,
    comments: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> WorkflowTask:
    entry = create_history_entry(
        task.current_step, completed_by, completed_by, comments, now=now
    )
    return _append(task, entry, status=WorkflowTaskStatus.COMPLETED)
