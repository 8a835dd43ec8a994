"""Workflow session: the only writer of persisted task state."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from . import engine
from .config import PolicyflowConfig, load_config
from .constants import TASK_ID_PREFIX
from .contracts import (
    Participant,
    Role,
    WorkflowStep,
    WorkflowTask,
    WorkflowTaskStatus,
)
from .errors import (
    ConfigurationError,
    IllegalTransitionError,
    TaskNotFoundError,
    TaskValidationError,
    UnauthorizedError,
)
from .persistence import TaskStore, get_store
from .policy import (
    CandidateT,
    WorkflowAction,
    available_assignees,
    available_next_steps,
    can_assign_to_step,
    can_complete,
    can_perform_action,
    send_back_target,
)
from .registry import get_workflow_config, load_workflow_file
from .registry.models import StepConfig, WorkflowConfig
from .roles import Permission, has_permission

logger = logging.getLogger(__name__)


def _default_task_id() -> str:
    return f"{TASK_ID_PREFIX}-{uuid.uuid4().hex}"


class WorkflowSession:
    """Owns the live task collection for one workflow definition.

    Every mutation checks legality against the workflow definition, runs the
    matching engine transition, re-validates the result and persists the
    whole collection. Mutations are serialized by a lock, and the in-memory
    collection only changes after the store accepted the new collection.
    """

    def __init__(
        self,
        config: WorkflowConfig,
        store: TaskStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._clock = clock or engine.utcnow
        self._id_factory = id_factory or _default_task_id
        self._tasks: List[WorkflowTask] = []
        # stored tasks outside this workflow, written back untouched
        self._foreign: List[WorkflowTask] = []
        self._lock = asyncio.Lock()

    @property
    def config(self) -> WorkflowConfig:
        return self._config

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def tasks(self) -> Tuple[WorkflowTask, ...]:
        """Read-only snapshot of the current collection."""
        return tuple(self._tasks)

    # ------------------------------------------------------------------
    # Queries
    def get_task_by_id(self, task_id: str) -> Optional[WorkflowTask]:
        return next((t for t in self._tasks if t.id == task_id), None)

    def list_tasks(
        self,
        assigned_to: Optional[str] = None,
        proposal_id: Optional[str] = None,
        status: Optional[WorkflowTaskStatus] = None,
    ) -> List[WorkflowTask]:
        return [
            t
            for t in self._tasks
            if (assigned_to is None or t.assigned_to == assigned_to)
            and (proposal_id is None or t.proposal_id == proposal_id)
            and (status is None or t.status == status)
        ]

    def tasks_for_assignee(self, user_id: str) -> List[WorkflowTask]:
        return self.list_tasks(assigned_to=user_id)

    def tasks_for_proposal(self, proposal_id: str) -> List[WorkflowTask]:
        return self.list_tasks(proposal_id=proposal_id)

    def active_task_for_proposal(self, proposal_id: str) -> Optional[WorkflowTask]:
        """Most recently updated open task of a proposal.

        Falls back to the most recently updated task of the proposal when all
        of them are completed.
        """
        tasks = self.tasks_for_proposal(proposal_id)
        if not tasks:
            return None
        active = [t for t in tasks if not t.is_completed()]
        return max(active or tasks, key=lambda t: t.updated_at)

    def available_next_steps(self, step: WorkflowStep | str) -> List[StepConfig]:
        return available_next_steps(self._config, step)

    def available_assignees(
        self,
        step: WorkflowStep | str,
        acting_role: Role | str,
        candidates: Iterable[CandidateT],
    ) -> List[CandidateT]:
        return available_assignees(self._config, step, acting_role, candidates)

    def can_perform_action(
        self, step: WorkflowStep | str, action: WorkflowAction | str, role: Role | str
    ) -> bool:
        return can_perform_action(self._config, step, action, role)

    def send_back_target(self, task_id: str) -> Optional[WorkflowStep]:
        return send_back_target(self._require_task(task_id))

    # ------------------------------------------------------------------
    # Mutations
    async def refresh(self) -> None:
        """Reload the collection from the store.

        Tasks visiting steps this workflow does not define are hidden from the
        session but kept, and every save writes them back unchanged. Call this
        after the store was changed behind the session's back, for example by
        ``policyflow task delete``.
        """
        async with self._lock:
            loaded = await self._store.load()
            known = set(self._config.step_names())
            accepted = []
            foreign = []
            for task in loaded:
                if all(entry.step in known for entry in task.history):
                    accepted.append(task)
                else:
                    logger.warning(
                        f"Ignoring task {task.id}: it visits steps outside "
                        f"workflow {self._config.product}"
                    )
                    foreign.append(task)
            self._tasks = accepted
            self._foreign = foreign
            logger.debug(f"Loaded {len(accepted)} task(s) for {self._config.product}")

    async def create_task(
        self,
        proposal_id: str,
        assignee: Participant,
        actor: Participant,
        comments: Optional[str] = None,
        initial_step: Optional[WorkflowStep | str] = None,
    ) -> WorkflowTask:
        """Open a task for a submitted proposal at the initial step."""
        async with self._lock:
            step = self._config.initial_step
            if initial_step is not None and self._coerce_step(initial_step) != step:
                raise IllegalTransitionError(
                    f"Tasks for {self._config.product} must start at step {step.value}"
                )
            if not has_permission(actor.role, Permission.WORKFLOW_ASSIGN):
                raise UnauthorizedError(
                    f"Role {actor.role.value} may not assign workflow tasks"
                )
            if not can_assign_to_step(self._config, step, assignee.role):
                raise IllegalTransitionError(
                    f"Role {assignee.role.value} cannot be assigned to step {step.value}"
                )

            try:
                candidate = engine.new_task(
                    self._new_task_id(),
                    proposal_id,
                    step,
                    assignee.id,
                    actor.id,
                    comments,
                    now=self._clock(),
                )
            except ValidationError as exc:
                raise TaskValidationError(f"Invalid task for proposal {proposal_id!r}: {exc}") from exc

            created = await self._commit(candidate)
            logger.info(
                f"Created task {created.id} for proposal {proposal_id} at "
                f"{step.value}, assigned to {assignee.id}"
            )
            return created

    async def advance(
        self,
        task_id: str,
        next_step: WorkflowStep | str,
        assignee: Participant,
        actor: Participant,
        comments: Optional[str] = None,
    ) -> WorkflowTask:
        """Move a task to one of its current step's next steps."""
        async with self._lock:
            task = self._require_task(task_id)
            current = self._require_step(task.current_step)
            self._ensure_open(task)
            target = self._coerce_step(next_step)

            if actor.role not in current.roles:
                raise UnauthorizedError(
                    f"Role {actor.role.value} cannot act on step {current.name.value}"
                )
            if target not in current.next_steps:
                raise IllegalTransitionError(
                    f"Step {target.value} is not reachable from {current.name.value}"
                )
            self._require_step(target)
            if not available_assignees(self._config, current.name, actor.role, [assignee]):
                raise UnauthorizedError(
                    f"Role {actor.role.value} may not hand {current.name.value} tasks "
                    f"to role {assignee.role.value}"
                )
            if not can_assign_to_step(self._config, target, assignee.role):
                raise IllegalTransitionError(
                    f"Role {assignee.role.value} cannot be assigned to step {target.value}"
                )

            candidate = engine.advance_task(
                task, target, assignee.id, actor.id, comments, now=self._clock()
            )
            updated = await self._commit(candidate, previous=task)
            logger.info(
                f"Task {task_id} advanced {current.name.value} -> {target.value} "
                f"by {actor.id}, assigned to {assignee.id}"
            )
            return updated

    async def reassign(
        self,
        task_id: str,
        new_assignee: Participant,
        actor: Participant,
        comments: Optional[str] = None,
    ) -> WorkflowTask:
        """Hand a task to another user without changing its step."""
        async with self._lock:
            task = self._require_task(task_id)
            current = self._require_step(task.current_step)
            self._ensure_open(task)

            if not current.allow_reassignment:
                raise IllegalTransitionError(
                    f"Reassignment is not allowed at step {current.name.value}"
                )
            if not can_perform_action(
                self._config, current.name, WorkflowAction.REASSIGN, actor.role
            ):
                raise UnauthorizedError(
                    f"Role {actor.role.value} may not reassign tasks at step "
                    f"{current.name.value}"
                )
            if not can_assign_to_step(self._config, current.name, new_assignee.role):
                raise IllegalTransitionError(
                    f"Role {new_assignee.role.value} cannot be assigned to step "
                    f"{current.name.value}"
                )

            candidate = engine.reassign_task(
                task, new_assignee.id, actor.id, comments, now=self._clock()
            )
            updated = await self._commit(candidate, previous=task)
            logger.info(
                f"Task {task_id} reassigned at {current.name.value} by {actor.id} "
                f"to {new_assignee.id}"
            )
            return updated

    async def send_back(
        self,
        task_id: str,
        assignee: Participant,
        actor: Participant,
        comments: str,
        previous_step: Optional[WorkflowStep | str] = None,
    ) -> WorkflowTask:
        """Return a task one hop back along its own history.

        ``previous_step`` is optional; when given it must name the step the
        task would be sent back to anyway.
        """
        async with self._lock:
            task = self._require_task(task_id)
            current = self._require_step(task.current_step)
            self._ensure_open(task)

            if not current.allow_send_back:
                raise IllegalTransitionError(
                    f"Sending back is not allowed at step {current.name.value}"
                )
            if not can_perform_action(
                self._config, current.name, WorkflowAction.SEND_BACK, actor.role
            ):
                raise UnauthorizedError(
                    f"Role {actor.role.value} may not send back tasks at step "
                    f"{current.name.value}"
                )
            target = send_back_target(task)
            if target is None:
                raise IllegalTransitionError(
                    f"Task {task_id} has no earlier step to be sent back to"
                )
            if previous_step is not None and self._coerce_step(previous_step) != target:
                raise IllegalTransitionError(
                    f"Task {task_id} can only be sent back to {target.value}"
                )
            if not comments or not comments.strip():
                raise IllegalTransitionError("Comments are required when sending a task back")
            self._require_step(target)
            if not can_assign_to_step(self._config, target, assignee.role):
                raise IllegalTransitionError(
                    f"Role {assignee.role.value} cannot be assigned to step {target.value}"
                )

            candidate = engine.send_back_task(
                task, target, assignee.id, actor.id, comments, now=self._clock()
            )
            updated = await self._commit(candidate, previous=task)
            logger.info(
                f"Task {task_id} sent back {current.name.value} -> {target.value} "
                f"by {actor.id}, assigned to {assignee.id}"
            )
            return updated

    async def complete(
        self,
        task_id: str,
        actor: Participant,
        comments: Optional[str] = None,
    ) -> WorkflowTask:
        """Close a task at a terminal step."""
        async with self._lock:
            task = self._require_task(task_id)
            current = self._require_step(task.current_step)
            self._ensure_open(task)

            if not current.terminal:
                raise IllegalTransitionError(
                    f"Tasks cannot be completed at step {current.name.value}"
                )
            if not can_complete(self._config, current.name, actor.role):
                raise UnauthorizedError(
                    f"Role {actor.role.value} may not complete tasks at step "
                    f"{current.name.value}"
                )

            candidate = engine.complete_task(task, actor.id, comments, now=self._clock())
            updated = await self._commit(candidate, previous=task)
            logger.info(f"Task {task_id} completed at {current.name.value} by {actor.id}")
            return updated

    async def delete_task(self, task_id: str) -> None:
        """Remove a task from the collection and the store.

        This is a storage operation, not a workflow transition: no history
        entry is recorded and no role is checked.
        """
        async with self._lock:
            self._require_task(task_id)
            collection = [t for t in self._tasks if t.id != task_id]
            await self._store.save_all([*collection, *self._foreign])
            self._tasks = collection
            logger.info(f"Task {task_id} deleted")

    # ------------------------------------------------------------------
    # Internals
    def _require_task(self, task_id: str) -> WorkflowTask:
        task = self.get_task_by_id(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _require_step(self, step: WorkflowStep) -> StepConfig:
        config = self._config.step(step)
        if config is None:
            raise ConfigurationError(
                f"Step {step.value} is not defined in workflow {self._config.product}"
            )
        return config

    def _coerce_step(self, step: WorkflowStep | str) -> WorkflowStep:
        try:
            return WorkflowStep(step)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown workflow step {step!r}") from exc

    @staticmethod
    def _ensure_open(task: WorkflowTask) -> None:
        if task.is_completed():
            raise IllegalTransitionError(f"Task {task.id} is already completed")

    def _new_task_id(self) -> str:
        existing = {t.id for t in (*self._tasks, *self._foreign)}
        task_id = self._id_factory()
        while task_id in existing:
            task_id = self._id_factory()
        return task_id

    def _validated(
        self, candidate: WorkflowTask, previous: Optional[WorkflowTask]
    ) -> WorkflowTask:
        try:
            task = WorkflowTask.model_validate(candidate.model_dump())
        except ValidationError as exc:
            raise TaskValidationError(f"Task {candidate.id} failed validation: {exc}") from exc

        unknown = [e.step.value for e in task.history if self._config.step(e.step) is None]
        if unknown:
            raise TaskValidationError(
                f"Task {task.id} references steps outside workflow "
                f"{self._config.product}: {', '.join(unknown)}"
            )

        if previous is None:
            if len(task.history) != 1:
                raise TaskValidationError(f"New task {task.id} must have exactly one history entry")
            return task

        if (
            task.id != previous.id
            or task.proposal_id != previous.proposal_id
            or task.created_at != previous.created_at
        ):
            raise TaskValidationError(f"Task {previous.id} identity fields changed")
        if task.history[:-1] != previous.history:
            raise TaskValidationError(f"Task {previous.id} history was rewritten")
        return task

    async def _commit(
        self, candidate: WorkflowTask, previous: Optional[WorkflowTask] = None
    ) -> WorkflowTask:
        task = self._validated(candidate, previous)
        if previous is None:
            collection = [*self._tasks, task]
        else:
            collection = [task if t.id == task.id else t for t in self._tasks]
        await self._store.save_all([*collection, *self._foreign])
        self._tasks = collection
        return task


async def open_session(
    product: Optional[str] = None,
    store: Optional[TaskStore] = None,
    settings: Optional[PolicyflowConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> WorkflowSession:
    """Create a session for ``product`` and load its tasks.

    Raises:
        ConfigurationError: If no workflow is registered for the product.
    """
    settings = settings or load_config()
    if settings.workflows_path:
        load_workflow_file(settings.workflows_path)

    product = product or settings.product
    workflow = get_workflow_config(product)
    if workflow is None:
        raise ConfigurationError(f"No workflow configured for product {product}")

    session = WorkflowSession(workflow, store or get_store(config=settings), clock=clock)
    await session.refresh()
    return session


__all__ = ["WorkflowSession", "open_session"]
