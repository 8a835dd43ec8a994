"""Walk a parcel insurance proposal through the full approval workflow."""

import asyncio

from policyflow import (
    IllegalTransitionError,
    Participant,
    Role,
    UnauthorizedError,
    open_session,
)
from policyflow.persistence import InMemoryTaskStore

UNDERWRITER = Participant(id="u1", role=Role.UNDERWRITER, name="Uma Underwriter")
BROKER_DESK = Participant(id="u2", role=Role.UNDERWRITER, name="Broker desk")
REVIEWER = Participant(id="u3", role=Role.RISK_REVIEWER, name="Rik Reviewer")
APPROVER = Participant(id="u4", role=Role.APPROVER, name="Ada Approver")
CASHIER = Participant(id="u5", role=Role.CASHIER, name="Cas Cashier")


async def happy_path():
    """Proposal -> risk review -> approval -> completed."""
    print("📦 Parcel insurance: happy path")

    session = await open_session(store=InMemoryTaskStore())
    task = await session.create_task("P-100", UNDERWRITER, BROKER_DESK, "New parcel proposal")
    print(f"✅ Created {task.id} at {task.current_step.value}")

    candidates = [UNDERWRITER, REVIEWER, APPROVER, CASHIER]
    options = session.available_assignees(task.current_step, UNDERWRITER.role, candidates)
    print(f"   Underwriter may hand off to: {[c.name for c in options]}")

    task = await session.advance(task.id, "risk_review", REVIEWER, UNDERWRITER, "Priced")
    task = await session.advance(task.id, "approval", APPROVER, REVIEWER, "Risk acceptable")
    task = await session.complete(task.id, APPROVER, "Bound")
    print(f"✅ {task.id} is {task.status.value} after {len(task.history)} steps")


async def send_back_example():
    """A risk reviewer returns an incomplete proposal to the underwriter."""
    print("\n↩️  Parcel insurance: send back")

    session = await open_session(store=InMemoryTaskStore())
    task = await session.create_task("P-200", UNDERWRITER, BROKER_DESK)
    task = await session.advance(task.id, "risk_review", REVIEWER, UNDERWRITER)

    print(f"   Send-back target: {session.send_back_target(task.id).value}")
    task = await session.send_back(task.id, UNDERWRITER, REVIEWER, "Missing declared value")
    print(f"✅ {task.id} is {task.status.value} at {task.current_step.value}")

    try:
        await session.complete(task.id, CASHIER)
    except IllegalTransitionError as exc:
        print(f"❌ Rejected: {exc}")
    try:
        await session.advance(task.id, "risk_review", REVIEWER, CASHIER)
    except UnauthorizedError as exc:
        print(f"❌ Rejected: {exc}")


async def main():
    await happy_path()
    await send_back_example()


if __name__ == "__main__":
    asyncio.run(main())
