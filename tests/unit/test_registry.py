"""Workflow definition registry tests."""

import pytest
from pydantic import ValidationError

import policyflow.registry as registry
from policyflow.contracts import Role, WorkflowStep
from policyflow.errors import ConfigurationError
from policyflow.registry import (
    PARCEL_INSURANCE_WORKFLOW,
    StepConfig,
    WorkflowConfig,
    get_workflow_config,
    load_workflow_file,
    parse_workflow,
)

MARINE_YAML = """
workflows:
  - product: MarineCargo
    steps:
      - name: proposal
        nextSteps: [approval]
        roles: [underwriter]
        allowReassignment: true
      - name: approval
        roles: [approver, manager]
        terminal: true
    roleBasedFiltering:
      proposal:
        underwriter: [approver]
"""


@pytest.fixture
def isolated_registry(monkeypatch):
    monkeypatch.setattr(registry, "WORKFLOW_REGISTRY", dict(registry.WORKFLOW_REGISTRY))
    return registry.WORKFLOW_REGISTRY


def test_builtin_parcel_workflow_is_registered():
    config = get_workflow_config("ParcelInsurance")
    assert config is PARCEL_INSURANCE_WORKFLOW
    assert config.initial_step == WorkflowStep.PROPOSAL
    assert config.step_names() == [
        WorkflowStep.PROPOSAL,
        WorkflowStep.RISK_REVIEW,
        WorkflowStep.APPROVAL,
    ]


def test_unknown_product_returns_none():
    assert get_workflow_config("Aviation") is None


def test_dangling_next_step_is_rejected():
    with pytest.raises(ValidationError, match="unknown next steps"):
        WorkflowConfig(
            product="Broken",
            steps=(StepConfig(name=WorkflowStep.PROPOSAL, next_steps=(WorkflowStep.APPROVAL,)),),
        )


def test_dangling_routing_step_is_a_configuration_error():
    data = {
        "product": "Broken",
        "steps": [{"name": "proposal", "roles": ["underwriter"]}],
        "roleBasedFiltering": {"risk_review": {"risk_reviewer": ["approver"]}},
    }
    with pytest.raises(ConfigurationError, match="Broken"):
        parse_workflow(data)


def test_unknown_step_and_role_names_fail_fast():
    with pytest.raises(ConfigurationError):
        parse_workflow({"product": "Typo", "steps": [{"name": "proposl"}]})
    with pytest.raises(ConfigurationError):
        parse_workflow(
            {"product": "Typo", "steps": [{"name": "proposal", "roles": ["underwritter"]}]}
        )


def test_duplicate_and_missing_steps_are_rejected():
    with pytest.raises(ConfigurationError, match="duplicate"):
        parse_workflow(
            {"product": "Dup", "steps": [{"name": "proposal"}, {"name": "proposal"}]}
        )
    with pytest.raises(ConfigurationError, match="no steps"):
        parse_workflow({"product": "Empty", "steps": []})


def test_config_is_frozen():
    with pytest.raises(ValidationError):
        PARCEL_INSURANCE_WORKFLOW.product = "Other"


def test_load_workflow_file_registers_definitions(tmp_path, isolated_registry):
    path = tmp_path / "workflows.yaml"
    path.write_text(MARINE_YAML)

    workflows = load_workflow_file(path)

    assert [w.product for w in workflows] == ["MarineCargo"]
    marine = get_workflow_config("MarineCargo")
    assert marine is workflows[0]
    assert marine.step("approval").roles == (Role.APPROVER, Role.MANAGER)
    assert marine.step("approval").terminal
    assert marine.role_based_filtering[WorkflowStep.PROPOSAL][Role.UNDERWRITER] == (
        Role.APPROVER,
    )


def test_load_workflow_file_without_registering(tmp_path, isolated_registry):
    path = tmp_path / "workflows.yaml"
    path.write_text(MARINE_YAML)

    load_workflow_file(path, register=False)
    assert "MarineCargo" not in isolated_registry


def test_load_workflow_file_errors(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_workflow_file(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("workflows: [\n")
    with pytest.raises(ConfigurationError, match="Malformed"):
        load_workflow_file(bad)
