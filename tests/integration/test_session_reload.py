"""Persist tasks, drop the session and reopen it against the same database."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from policyflow import Participant, Role, WorkflowStep, WorkflowTaskStatus, open_session
from policyflow.config import PolicyflowConfig
from policyflow.db import TaskDB
from policyflow.errors import ConfigurationError
from policyflow.persistence import SQLiteTaskStore

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

UNDERWRITER = Participant(id="u1", role=Role.UNDERWRITER)
SUBMITTER = Participant(id="u2", role=Role.UNDERWRITER)
REVIEWER = Participant(id="u3", role=Role.RISK_REVIEWER)
APPROVER = Participant(id="u4", role=Role.APPROVER)


def _clock():
    ticks = itertools.count()
    return lambda: T0 + timedelta(minutes=next(ticks))


async def _populate(session):
    first = await session.create_task("P-1", UNDERWRITER, SUBMITTER)
    second = await session.create_task("P-2", UNDERWRITER, SUBMITTER)
    await session.advance(second.id, "risk_review", REVIEWER, UNDERWRITER)
    third = await session.create_task("P-3", UNDERWRITER, SUBMITTER)
    await session.advance(third.id, "risk_review", REVIEWER, UNDERWRITER)
    await session.advance(third.id, "approval", APPROVER, REVIEWER)
    await session.complete(third.id, APPROVER, "bound")
    return first.id, second.id, third.id


@pytest.mark.asyncio
async def test_sqlite_reload(tmp_path):
    settings = PolicyflowConfig()
    db_path = tmp_path / "tasks.db"

    store = SQLiteTaskStore(db_path)
    session = await open_session(store=store, settings=settings, clock=_clock())
    ids = await _populate(session)
    before = session.tasks
    await store.close()

    reopened = await open_session(store=SQLiteTaskStore(db_path), settings=settings)

    assert len(reopened.tasks) == 3
    assert reopened.tasks == before
    third = reopened.get_task_by_id(ids[2])
    assert third.status == WorkflowTaskStatus.COMPLETED
    assert third.current_step == WorkflowStep.APPROVAL
    assert isinstance(third.created_at, datetime)
    assert third.updated_at == T0 + timedelta(minutes=6)
    assert [entry.timestamp for entry in third.history] == [
        T0 + timedelta(minutes=m) for m in (3, 4, 5, 6)
    ]


@pytest.mark.asyncio
async def test_reopened_session_continues_workflow(tmp_path):
    settings = PolicyflowConfig()
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}"

    store = TaskDB(db_url)
    session = await open_session(store=store, settings=settings, clock=_clock())
    first_id, second_id, _ = await _populate(session)
    await store.close()

    store = TaskDB(db_url)
    reopened = await open_session(store=store, settings=settings)
    returned = await reopened.send_back(second_id, UNDERWRITER, REVIEWER, "needs photos")
    await store.close()

    final = await open_session(store=TaskDB(db_url), settings=settings)
    assert final.get_task_by_id(second_id) == returned
    assert final.get_task_by_id(second_id).status == WorkflowTaskStatus.SENT_BACK
    assert final.active_task_for_proposal("P-1").id == first_id


@pytest.mark.asyncio
async def test_open_session_for_unknown_product(tmp_path):
    with pytest.raises(ConfigurationError):
        await open_session(
            "Aviation", store=SQLiteTaskStore(tmp_path / "x.db"), settings=PolicyflowConfig()
        )
