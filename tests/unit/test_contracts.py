"""Task contract validation tests."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from policyflow import engine
from policyflow.contracts import (
    Participant,
    Role,
    WorkflowHistoryEntry,
    WorkflowStep,
    WorkflowTask,
    WorkflowTaskStatus,
)
from policyflow.persistence import decode_tasks, encode_tasks

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _task_data(**overrides):
    data = {
        "id": "wf-1",
        "proposalId": "P-1",
        "currentStep": "proposal",
        "assignedTo": "u1",
        "assignedBy": "u2",
        "status": "in_progress",
        "history": [
            {
                "step": "proposal",
                "assignedTo": "u1",
                "assignedBy": "u2",
                "timestamp": "2024-03-01T12:00:00Z",
            }
        ],
        "createdAt": "2024-03-01T12:00:00Z",
        "updatedAt": "2024-03-01T12:00:00Z",
    }
    data.update(overrides)
    return data


def test_task_parses_camel_case_payload():
    task = WorkflowTask.model_validate(_task_data())
    assert task.proposal_id == "P-1"
    assert task.current_step == WorkflowStep.PROPOSAL
    assert task.status == WorkflowTaskStatus.IN_PROGRESS
    assert task.history[0].timestamp == T0


def test_task_rejects_empty_history():
    with pytest.raises(ValidationError):
        WorkflowTask.model_validate(_task_data(history=[]))


def test_task_rejects_history_not_ending_at_current_step():
    with pytest.raises(ValidationError):
        WorkflowTask.model_validate(_task_data(currentStep="risk_review"))


def test_task_rejects_updated_at_mismatch():
    with pytest.raises(ValidationError):
        WorkflowTask.model_validate(_task_data(updatedAt="2024-03-01T12:05:00Z"))


def test_task_rejects_unknown_status_and_step():
    with pytest.raises(ValidationError):
        WorkflowTask.model_validate(_task_data(status="archived"))
    with pytest.raises(ValidationError):
        WorkflowTask.model_validate(_task_data(currentStep="underwriting"))


def test_naive_timestamps_are_treated_as_utc():
    task = WorkflowTask.model_validate(
        _task_data(
            createdAt="2024-03-01T12:00:00",
            updatedAt="2024-03-01T12:00:00",
            history=[
                {
                    "step": "proposal",
                    "assignedTo": "u1",
                    "assignedBy": "u2",
                    "timestamp": "2024-03-01T12:00:00",
                }
            ],
        )
    )
    assert task.created_at == T0
    assert task.updated_at.tzinfo is not None


def test_task_json_round_trip():
    task = engine.new_task("wf-9", "P-9", WorkflowStep.PROPOSAL, "u1", "u2", now=T0)
    task = engine.advance_task(
        task, WorkflowStep.RISK_REVIEW, "u3", "u1", "go", now=T0 + timedelta(hours=1)
    )

    raw = encode_tasks([task])
    data = json.loads(raw)[0]
    assert data["currentStep"] == "risk_review"
    assert "comments" not in data["history"][0]
    assert data["history"][1]["comments"] == "go"

    (restored,) = decode_tasks(raw)
    assert restored == task
    assert isinstance(restored.updated_at, datetime)


def test_tasks_are_immutable():
    task = WorkflowTask.model_validate(_task_data())
    with pytest.raises(ValidationError):
        task.status = WorkflowTaskStatus.COMPLETED


def test_participant_and_history_ids_must_be_non_empty():
    with pytest.raises(ValidationError):
        Participant(id="", role=Role.UNDERWRITER)
    with pytest.raises(ValidationError):
        WorkflowHistoryEntry(step="proposal", assigned_to="", assigned_by="u2", timestamp=T0)
    with pytest.raises(ValidationError):
        WorkflowHistoryEntry(step="proposal", assigned_to="u1", assigned_by="", timestamp=T0)
    with pytest.raises(ValidationError):
        WorkflowTask.model_validate(
            _task_data(
                history=[
                    {
                        "step": "proposal",
                        "assignedTo": "",
                        "assignedBy": "u2",
                        "timestamp": "2024-03-01T12:00:00Z",
                    }
                ]
            )
        )
