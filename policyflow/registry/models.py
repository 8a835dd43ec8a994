"""Pydantic models describing workflow definitions."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from pydantic import Field, field_validator, model_validator

from ..contracts import Role, WireModel, WorkflowStep


class StepConfig(WireModel):
    """Rules for one node of the workflow graph."""

    name: WorkflowStep
    next_steps: Tuple[WorkflowStep, ...] = Field(default_factory=tuple)
    roles: Tuple[Role, ...] = Field(default_factory=tuple)
    allow_reassignment: bool = False
    allow_send_back: bool = False
    terminal: bool = False


RoleRouting = Dict[WorkflowStep, Dict[Role, Tuple[Role, ...]]]


class WorkflowConfig(WireModel):
    """Complete workflow definition for one product.

    ``role_based_filtering`` maps a step and the role acting on it to the
    roles that may be picked as the next assignee.
    """

    product: str
    steps: Tuple[StepConfig, ...]
    role_based_filtering: RoleRouting = Field(default_factory=dict)

    @field_validator("product")
    @classmethod
    def _ensure_product(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("product must be a non-empty string")
        return v

    @model_validator(mode="after")
    def _check_references(self) -> "WorkflowConfig":
        if not self.steps:
            raise ValueError(f"workflow {self.product} defines no steps")

        names = [step.name for step in self.steps]
        duplicates = sorted({n.value for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate step names: {', '.join(duplicates)}")

        known = set(names)
        for step in self.steps:
            dangling = [n.value for n in step.next_steps if n not in known]
            if dangling:
                raise ValueError(
                    f"step {step.name.value} references unknown next steps: "
                    f"{', '.join(dangling)}"
                )
        unknown = [s.value for s in self.role_based_filtering if s not in known]
        if unknown:
            raise ValueError(
                f"role based filtering references unknown steps: {', '.join(unknown)}"
            )
        return self

    @property
    def initial_step(self) -> WorkflowStep:
        return self.steps[0].name

    def step(self, name: WorkflowStep | str) -> Optional[StepConfig]:
        """Return the configuration for ``name`` if defined."""
        return next((s for s in self.steps if s.name == name), None)

    def step_names(self) -> list[WorkflowStep]:
        return [s.name for s in self.steps]
