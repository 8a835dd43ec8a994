"""Built-in workflow definitions."""

from __future__ import annotations

from ..contracts import Role, WorkflowStep
from .models import StepConfig, WorkflowConfig

PARCEL_INSURANCE_WORKFLOW = WorkflowConfig(
    product="ParcelInsurance",
    steps=(
        StepConfig(
            name=WorkflowStep.PROPOSAL,
            next_steps=(WorkflowStep.RISK_REVIEW,),
            roles=(Role.UNDERWRITER,),
            allow_reassignment=True,
            allow_send_back=True,
        ),
        StepConfig(
            name=WorkflowStep.RISK_REVIEW,
            next_steps=(WorkflowStep.APPROVAL, WorkflowStep.PROPOSAL),
            roles=(Role.RISK_REVIEWER,),
            allow_reassignment=True,
            allow_send_back=True,
        ),
        StepConfig(
            name=WorkflowStep.APPROVAL,
            roles=(Role.APPROVER,),
            allow_reassignment=False,
            allow_send_back=False,
            terminal=True,
        ),
    ),
    role_based_filtering={
        WorkflowStep.PROPOSAL: {
            Role.UNDERWRITER: (Role.RISK_REVIEWER,),
        },
        WorkflowStep.RISK_REVIEW: {
            Role.RISK_REVIEWER: (Role.APPROVER, Role.UNDERWRITER),
        },
    },
)

BUILTIN_WORKFLOWS = (PARCEL_INSURANCE_WORKFLOW,)
