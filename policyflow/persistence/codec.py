"""JSON encoding of the stored task collection."""

from __future__ import annotations

import json
import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from ..contracts import WorkflowTask

logger = logging.getLogger(__name__)


def encode_tasks(tasks: Sequence[WorkflowTask]) -> str:
    """Serialize ``tasks`` to a JSON array with ISO-8601 dates."""
    return json.dumps(
        [task.model_dump(mode="json", by_alias=True, exclude_none=True) for task in tasks]
    )


def decode_tasks(raw: Optional[str]) -> list[WorkflowTask]:
    """Parse a stored JSON array, dropping entries that fail validation.

    A missing or undecodable slot yields an empty list.
    """
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning(f"Discarding undecodable task collection: {exc}")
        return []
    if not isinstance(items, list):
        logger.warning("Discarding task collection: expected a JSON array")
        return []

    tasks: list[WorkflowTask] = []
    for index, item in enumerate(items):
        try:
            tasks.append(WorkflowTask.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                f"Dropping invalid stored task at position {index}: "
                f"{exc.error_count()} validation error(s)"
            )
    return tasks
