"""Command line interface for inspecting workflow tasks and definitions."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from policyflow import get_store, get_workflow_config
from policyflow.config import load_config
from policyflow.errors import ConfigurationError, StorageError
from policyflow.registry import load_workflow_file
from policyflow.roles import ROLES

app = typer.Typer(help="CLI for policyflow workflows")

# Command groups
task_app = typer.Typer(help="Commands for inspecting stored tasks")
workflow_app = typer.Typer(help="Commands for workflow definitions")
roles_app = typer.Typer(help="Commands for the role table")

app.add_typer(task_app, name="task")
app.add_typer(workflow_app, name="workflow")
app.add_typer(roles_app, name="roles")


@app.callback()
def main() -> None:
    """Policyflow CLI entry point."""
    config = load_config()
    logging.basicConfig(level=config.log_level.upper())
    if config.workflows_path:
        try:
            load_workflow_file(config.workflows_path)
        except ConfigurationError as exc:
            typer.secho(str(exc), fg=typer.colors.RED)
            raise typer.Exit(code=1)


def _load_tasks():
    store = get_store()
    try:
        return asyncio.run(store.load())
    except StorageError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@task_app.command("list")
def task_list(
    assignee: Optional[str] = typer.Option(None, help="Only tasks assigned to this user"),
    proposal: Optional[str] = typer.Option(None, help="Only tasks for this proposal"),
) -> None:
    """
    List stored tasks with their step, status and assignee.

    Example:
        policyflow task list
        policyflow task list --assignee u3
        # Output: wf-1a2b...    P-100    risk_review    in_progress    u3
    """
    tasks = [
        t
        for t in _load_tasks()
        if (assignee is None or t.assigned_to == assignee)
        and (proposal is None or t.proposal_id == proposal)
    ]
    if not tasks:
        typer.echo("No tasks found")
        return
    for task in tasks:
        typer.echo(
            f"{task.id}\t{task.proposal_id}\t{task.current_step.value}\t"
            f"{task.status.value}\t{task.assigned_to}"
        )


@task_app.command("show")
def task_show(task_id: str) -> None:
    """
    Show a task and its full transition history.

    Example:
        policyflow task show wf-1a2b3c
        # Output: Task wf-1a2b3c (proposal P-100): in_progress at risk_review
        #         - 2024-01-01T10:00:00+00:00 proposal: u2 -> u1
        #         - 2024-01-01T11:00:00+00:00 risk_review: u1 -> u3 (looks fine)
    """
    task = next((t for t in _load_tasks() if t.id == task_id), None)
    if task is None:
        typer.echo("Task not found")
        raise typer.Exit(code=1)
    typer.echo(
        f"Task {task.id} (proposal {task.proposal_id}): "
        f"{task.status.value} at {task.current_step.value}"
    )
    typer.echo(f"Assigned to {task.assigned_to} by {task.assigned_by}")
    for entry in task.history:
        typer.echo(
            f"- {entry.timestamp.isoformat()} {entry.step.value}: "
            f"{entry.assigned_by} -> {entry.assigned_to}"
            + (f" ({entry.comments})" if entry.comments else "")
        )


@task_app.command("delete")
def task_delete(task_id: str) -> None:
    """Remove a task from the store. This bypasses the workflow entirely.

    Running sessions keep their own copy of the collection; they must call
    ``refresh()`` before their next mutation or the task is written back.
    """
    store = get_store()
    try:
        removed = asyncio.run(store.delete_one(task_id))
    except StorageError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not removed:
        typer.echo("Task not found")
        raise typer.Exit(code=1)
    typer.echo(f"Deleted task {task_id}")


@workflow_app.command("show")
def workflow_show(product: Optional[str] = typer.Argument(None)) -> None:
    """
    Show the steps and routing rules of a product's workflow.

    Example:
        policyflow workflow show ParcelInsurance
    """
    product = product or load_config().product
    config = get_workflow_config(product)
    if config is None:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    typer.echo(f"Workflow {config.product}")
    for step in config.steps:
        flags = [
            name
            for name, enabled in (
                ("reassign", step.allow_reassignment),
                ("send-back", step.allow_send_back),
                ("terminal", step.terminal),
            )
            if enabled
        ]
        next_steps = ", ".join(s.value for s in step.next_steps) or "(none)"
        typer.echo(
            f"- {step.name.value}: roles={', '.join(r.value for r in step.roles)} "
            f"next={next_steps}" + (f" [{', '.join(flags)}]" if flags else "")
        )
        for acting, targets in config.role_based_filtering.get(step.name, {}).items():
            typer.echo(f"    {acting.value} may assign: {', '.join(t.value for t in targets)}")


@workflow_app.command("validate")
def workflow_validate(path: Path) -> None:
    """Validate a YAML workflow definition file without registering it."""
    try:
        workflows = load_workflow_file(path, register=False)
    except ConfigurationError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    for workflow in workflows:
        typer.echo(f"{workflow.product}: OK ({len(workflow.steps)} steps)")


@roles_app.command("list")
def roles_list() -> None:
    """List roles with their workflow steps and permissions."""
    for role in ROLES:
        steps = ", ".join(s.value for s in role.workflow_steps) or "(none)"
        typer.echo(f"{role.id.value}\t{role.name}\tsteps: {steps}")
        typer.echo(f"    {', '.join(p.value for p in role.permissions)}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
