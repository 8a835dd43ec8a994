"""Authorization and routing queries against a workflow definition.

Nothing here looks at storage or mutates a task. The session consults these
queries before it calls any engine transition.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Protocol, TypeVar

from .contracts import Role, WorkflowStep, WorkflowTask
from .registry.models import StepConfig, WorkflowConfig


class WorkflowAction(str, Enum):
    """Actions gated by a step-level capability flag."""

    REASSIGN = "reassign"
    SEND_BACK = "sendBack"


class HasRole(Protocol):
    role: Role


CandidateT = TypeVar("CandidateT", bound=HasRole)


def step_config(config: WorkflowConfig, step_name: WorkflowStep | str) -> Optional[StepConfig]:
    """Return the configuration of ``step_name`` or ``None`` if not defined."""
    return config.step(step_name)


def available_next_steps(
    config: WorkflowConfig, current_step: WorkflowStep | str
) -> List[StepConfig]:
    """Steps reachable directly from ``current_step``, in configuration order."""
    step = config.step(current_step)
    if step is None:
        return []
    return [s for s in config.steps if s.name in step.next_steps]


def can_assign_to_step(
    config: WorkflowConfig, step_name: WorkflowStep | str, role: Role | str
) -> bool:
    step = config.step(step_name)
    if step is None:
        return False
    return role in step.roles


def available_assignees(
    config: WorkflowConfig,
    current_step: WorkflowStep | str,
    acting_role: Role | str,
    candidates: Iterable[CandidateT],
) -> List[CandidateT]:
    """Filter ``candidates`` to those the acting role may hand the task to.

    A step or acting role without a routing entry yields no assignees.
    """
    try:
        step, role = WorkflowStep(current_step), Role(acting_role)
    except ValueError:
        return []
    routing = config.role_based_filtering.get(step)
    if not routing:
        return []
    allowed = routing.get(role, ())
    return [c for c in candidates if c.role in allowed]


def can_perform_action(
    config: WorkflowConfig,
    step_name: WorkflowStep | str,
    action: WorkflowAction | str,
    role: Role | str,
) -> bool:
    """Both the step flag and role membership are required."""
    step = config.step(step_name)
    if step is None:
        return False

    action = WorkflowAction(action)
    if action == WorkflowAction.REASSIGN and not step.allow_reassignment:
        return False
    if action == WorkflowAction.SEND_BACK and not step.allow_send_back:
        return False

    return role in step.roles


def can_complete(
    config: WorkflowConfig, step_name: WorkflowStep | str, role: Role | str
) -> bool:
    step = config.step(step_name)
    if step is None:
        return False
    return step.terminal and role in step.roles


def send_back_target(task: WorkflowTask) -> Optional[WorkflowStep]:
    """Step a task returns to when sent back: one hop back in its own history.

    History is ordered by timestamp, newest first (later insertion wins ties),
    and the first entry at a step other than the current one is the target.
    """
    newest_first = sorted(
        reversed(task.history), key=lambda entry: entry.timestamp, reverse=True
    )
    for entry in newest_first:
        if entry.step != task.current_step:
            return entry.step
    return None
