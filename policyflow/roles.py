"""Static role table: permissions and workflow steps per role."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .contracts import Role, WorkflowStep


class Permission(str, Enum):
    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_UPDATE = "users.update"
    USERS_DELETE = "users.delete"

    PROPOSALS_VIEW = "proposals.view"
    PROPOSALS_CREATE = "proposals.create"
    PROPOSALS_UPDATE = "proposals.update"
    PROPOSALS_DELETE = "proposals.delete"

    WORKFLOW_VIEW = "workflow.view"
    WORKFLOW_ASSIGN = "workflow.assign"
    WORKFLOW_TRANSITION = "workflow.transition"
    WORKFLOW_REASSIGN = "workflow.reassign"
    WORKFLOW_SEND_BACK = "workflow.sendBack"

    ADMIN_SETTINGS = "admin.settings"
    ADMIN_ROLES = "admin.roles"
    ADMIN_WORKFLOW = "admin.workflow"
    ADMIN_REPORTS = "admin.reports"


class RoleDefinition(BaseModel):
    """Permissions and eligible workflow steps for one role."""

    model_config = ConfigDict(frozen=True)

    id: Role
    name: str
    description: str
    permissions: Tuple[Permission, ...] = Field(default_factory=tuple)
    workflow_steps: Tuple[WorkflowStep, ...] = Field(default_factory=tuple)


ROLES: Tuple[RoleDefinition, ...] = (
    RoleDefinition(
        id=Role.SUPERADMIN,
        name="Super Administrator",
        description="Full system access with all permissions",
        permissions=tuple(Permission),
        workflow_steps=tuple(WorkflowStep),
    ),
    RoleDefinition(
        id=Role.ADMIN,
        name="Administrator",
        description="System administrator with access to most features",
        permissions=(
            Permission.USERS_VIEW,
            Permission.USERS_CREATE,
            Permission.USERS_UPDATE,
            Permission.PROPOSALS_VIEW,
            Permission.WORKFLOW_VIEW,
            Permission.ADMIN_SETTINGS,
            Permission.ADMIN_REPORTS,
        ),
    ),
    RoleDefinition(
        id=Role.MANAGER,
        name="Manager",
        description="Department manager with oversight capabilities",
        permissions=(
            Permission.USERS_VIEW,
            Permission.PROPOSALS_VIEW,
            Permission.WORKFLOW_VIEW,
            Permission.WORKFLOW_REASSIGN,
            Permission.ADMIN_REPORTS,
        ),
    ),
    RoleDefinition(
        id=Role.UNDERWRITER,
        name="Underwriter",
        description="Creates and processes insurance proposals",
        permissions=(
            Permission.PROPOSALS_VIEW,
            Permission.PROPOSALS_CREATE,
            Permission.PROPOSALS_UPDATE,
            Permission.WORKFLOW_VIEW,
            Permission.WORKFLOW_ASSIGN,
        ),
        workflow_steps=(WorkflowStep.PROPOSAL,),
    ),
    RoleDefinition(
        id=Role.RISK_REVIEWER,
        name="Risk Reviewer",
        description="Reviews and assesses risk for insurance proposals",
        permissions=(
            Permission.PROPOSALS_VIEW,
            Permission.PROPOSALS_UPDATE,
            Permission.WORKFLOW_VIEW,
            Permission.WORKFLOW_TRANSITION,
            Permission.WORKFLOW_SEND_BACK,
        ),
        workflow_steps=(WorkflowStep.RISK_REVIEW,),
    ),
    RoleDefinition(
        id=Role.APPROVER,
        name="Approver",
        description="Final approval authority for insurance proposals",
        permissions=(
            Permission.PROPOSALS_VIEW,
            Permission.WORKFLOW_VIEW,
            Permission.WORKFLOW_TRANSITION,
        ),
        workflow_steps=(WorkflowStep.APPROVAL,),
    ),
    RoleDefinition(
        id=Role.CASHIER,
        name="Cashier",
        description="Handles financial transactions",
        permissions=(Permission.PROPOSALS_VIEW,),
    ),
)


def get_role(role: Role | str) -> Optional[RoleDefinition]:
    """Return the definition for ``role`` or ``None`` when unknown."""
    return next((r for r in ROLES if r.id == role), None)


def has_permission(role: Role | str, permission: Permission) -> bool:
    definition = get_role(role)
    if definition is None:
        return False
    return permission in definition.permissions


def has_any_permission(role: Role | str, permissions: Iterable[Permission]) -> bool:
    return any(has_permission(role, p) for p in permissions)


def has_all_permissions(role: Role | str, permissions: Iterable[Permission]) -> bool:
    return all(has_permission(role, p) for p in permissions)


def can_be_assigned_to_step(role: Role | str, step: WorkflowStep | str) -> bool:
    """Return ``True`` if the role table lists ``step`` for ``role``."""
    definition = get_role(role)
    if definition is None:
        return False
    return step in definition.workflow_steps


def roles_for_workflow_step(step: WorkflowStep | str) -> List[RoleDefinition]:
    """Roles that list ``step`` and may assign workflow tasks."""
    return [
        r
        for r in ROLES
        if step in r.workflow_steps and Permission.WORKFLOW_ASSIGN in r.permissions
    ]
