"""Core task contracts for the policyflow workflow engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class WorkflowStep(str, Enum):
    """Steps a proposal task can occupy."""

    PROPOSAL = "proposal"
    RISK_REVIEW = "risk_review"
    APPROVAL = "approval"


class Role(str, Enum):
    """Role identifiers known to the console."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    MANAGER = "manager"
    UNDERWRITER = "underwriter"
    RISK_REVIEWER = "risk_reviewer"
    APPROVER = "approver"
    CASHIER = "cashier"


class WorkflowTaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    SENT_BACK = "sent_back"


class WireModel(BaseModel):
    """Base for models stored as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Participant(WireModel):
    """A user that can act on, or be assigned, a task."""

    id: str = Field(..., min_length=1)
    role: Role
    name: Optional[str] = None


class WorkflowHistoryEntry(WireModel):
    """Immutable audit record of one transition."""

    step: WorkflowStep
    assigned_to: str = Field(..., min_length=1)
    assigned_by: str = Field(..., min_length=1)
    timestamp: datetime
    comments: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class WorkflowTask(WireModel):
    """One proposal moving through the workflow.

    Instances are values: every transition produces a new task with one more
    history entry. The validator enforces the structural invariants that can
    be checked without a workflow configuration.
    """

    id: str = Field(..., min_length=1)
    proposal_id: str = Field(..., min_length=1)
    current_step: WorkflowStep
    assigned_to: str
    assigned_by: str
    status: WorkflowTaskStatus
    history: Tuple[WorkflowHistoryEntry, ...]
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def _check_history(self) -> "WorkflowTask":
        if not self.history:
            raise ValueError("history must contain at least one entry")
        latest = self.history[-1]
        if latest.step != self.current_step:
            raise ValueError(
                f"latest history step {latest.step.value} does not match "
                f"current step {self.current_step.value}"
            )
        if self.updated_at < self.created_at:
            raise ValueError("updated_at precedes created_at")
        if self.updated_at != latest.timestamp:
            raise ValueError("updated_at must equal the latest history timestamp")
        return self

    def is_completed(self) -> bool:
        return self.status == WorkflowTaskStatus.COMPLETED
