"""Tests for the pure transition functions."""

from datetime import datetime, timedelta, timezone

from policyflow import engine
from policyflow.contracts import WorkflowStep, WorkflowTaskStatus

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def _new_task():
    return engine.new_task(
        "wf-1", "P-100", WorkflowStep.PROPOSAL, "u1", "u2", "submitted", now=_at(0)
    )


def test_new_task_starts_in_progress_with_single_entry():
    task = _new_task()

    assert task.status == WorkflowTaskStatus.IN_PROGRESS
    assert task.current_step == WorkflowStep.PROPOSAL
    assert len(task.history) == 1
    assert task.history[0].step == WorkflowStep.PROPOSAL
    assert task.history[0].comments == "submitted"
    assert task.created_at == task.updated_at == _at(0)


def test_advance_appends_and_keeps_prior_entries():
    task = _new_task()
    advanced = engine.advance_task(
        task, WorkflowStep.RISK_REVIEW, "u3", "u1", "ready", now=_at(5)
    )

    assert advanced.current_step == WorkflowStep.RISK_REVIEW
    assert advanced.assigned_to == "u3"
    assert advanced.assigned_by == "u1"
    assert advanced.status == WorkflowTaskStatus.IN_PROGRESS
    assert len(advanced.history) == 2
    assert advanced.history[0] is task.history[0]
    assert advanced.updated_at == _at(5)
    assert advanced.created_at == task.created_at
    # the input value is untouched
    assert len(task.history) == 1


def test_reassign_to_same_assignee_still_records_entry():
    task = _new_task()
    reassigned = engine.reassign_task(task, task.assigned_to, "u2", now=_at(1))

    assert reassigned.assigned_to == task.assigned_to
    assert len(reassigned.history) == 2
    assert reassigned.history[-1].step == WorkflowStep.PROPOSAL
    assert reassigned.history[-1].assigned_to == "u1"
    assert reassigned.current_step == WorkflowStep.PROPOSAL


def test_send_back_sets_status_and_step():
    task = engine.advance_task(_new_task(), WorkflowStep.RISK_REVIEW, "u3", "u1", now=_at(1))
    sent_back = engine.send_back_task(
        task, WorkflowStep.PROPOSAL, "u1", "u3", "missing documents", now=_at(2)
    )

    assert sent_back.status == WorkflowTaskStatus.SENT_BACK
    assert sent_back.current_step == WorkflowStep.PROPOSAL
    assert sent_back.assigned_to == "u1"
    assert sent_back.history[-1].comments == "missing documents"


def test_complete_records_completer_on_both_sides():
    task = engine.advance_task(_new_task(), WorkflowStep.APPROVAL, "u4", "u3", now=_at(1))
    completed = engine.complete_task(task, "u4", "approved", now=_at(2))

    assert completed.status == WorkflowTaskStatus.COMPLETED
    assert completed.current_step == WorkflowStep.APPROVAL
    entry = completed.history[-1]
    assert entry.assigned_to == entry.assigned_by == "u4"
    assert entry.step == WorkflowStep.APPROVAL
    assert completed.assigned_to == task.assigned_to


def test_every_transition_appends_exactly_one_matching_entry():
    task = _new_task()
    transitions = [
        lambda t, n: engine.advance_task(t, WorkflowStep.RISK_REVIEW, "u3", "u1", now=_at(n)),
        lambda t, n: engine.reassign_task(t, "u5", "u3", now=_at(n)),
        lambda t, n: engine.send_back_task(t, WorkflowStep.PROPOSAL, "u1", "u5", "redo", now=_at(n)),
        lambda t, n: engine.advance_task(t, WorkflowStep.RISK_REVIEW, "u3", "u1", now=_at(n)),
        lambda t, n: engine.advance_task(t, WorkflowStep.APPROVAL, "u4", "u3", now=_at(n)),
        lambda t, n: engine.complete_task(t, "u4", now=_at(n)),
    ]
    for minute, transition in enumerate(transitions, start=1):
        updated = transition(task, minute)
        assert len(updated.history) == len(task.history) + 1
        assert updated.history[:-1] == task.history
        assert updated.history[-1].step == updated.current_step
        assert updated.updated_at == updated.history[-1].timestamp
        task = updated


def test_engine_does_not_check_workflow_legality():
    task = _new_task()
    # proposal -> approval skips a step; the engine still produces the value
    jumped = engine.advance_task(task, WorkflowStep.APPROVAL, "anyone", "u1", now=_at(1))
    assert jumped.current_step == WorkflowStep.APPROVAL


def test_default_clock_is_timezone_aware():
    entry = engine.create_history_entry(WorkflowStep.PROPOSAL, "u1", "u2")
    assert entry.timestamp.tzinfo is not None
    assert entry.comments is None
