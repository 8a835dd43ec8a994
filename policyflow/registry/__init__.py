"""Workflow definition registry and loaders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .defaults import BUILTIN_WORKFLOWS, PARCEL_INSURANCE_WORKFLOW
from .models import RoleRouting, StepConfig, WorkflowConfig

logger = logging.getLogger(__name__)

# Product name -> definition. Built-in workflows are registered at import;
# definitions loaded from YAML replace entries with the same product name.
WORKFLOW_REGISTRY: Dict[str, WorkflowConfig] = {
    workflow.product: workflow for workflow in BUILTIN_WORKFLOWS
}


def register_workflow(config: WorkflowConfig) -> None:
    """Add ``config`` to ``WORKFLOW_REGISTRY`` keyed by its product."""
    if config.product in WORKFLOW_REGISTRY:
        logger.info(f"Replacing workflow definition for product {config.product}")
    WORKFLOW_REGISTRY[config.product] = config


def get_workflow_config(product: str) -> Optional[WorkflowConfig]:
    """Return the workflow definition for ``product`` or ``None``."""
    return WORKFLOW_REGISTRY.get(product)


def parse_workflow(data: dict) -> WorkflowConfig:
    """Validate a raw mapping into a :class:`WorkflowConfig`.

    Raises:
        ConfigurationError: If the mapping is not a valid workflow, including
            steps that reference undefined steps.
    """
    try:
        return WorkflowConfig.model_validate(data)
    except ValidationError as exc:
        product = data.get("product", "<unnamed>") if isinstance(data, dict) else "<unnamed>"
        raise ConfigurationError(f"Invalid workflow definition {product}: {exc}") from exc


def load_workflow_file(path: str | Path, register: bool = True) -> List[WorkflowConfig]:
    """Load workflow definitions from a YAML file.

    The file holds either a single workflow mapping or a ``workflows`` list.
    Every definition is validated before any of them is registered.
    """
    file_path = Path(path)
    try:
        with file_path.open() as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read workflow file {file_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed workflow file {file_path}: {exc}") from exc

    if isinstance(data, dict) and "workflows" in data:
        raw_items = data["workflows"] or []
    else:
        raw_items = [data]
    if not isinstance(raw_items, list):
        raise ConfigurationError(f"'workflows' in {file_path} must be a list")

    workflows = [parse_workflow(item) for item in raw_items]
    if register:
        for workflow in workflows:
            register_workflow(workflow)
    logger.debug(f"Loaded {len(workflows)} workflow definition(s) from {file_path}")
    return workflows


__all__ = [
    "StepConfig",
    "WorkflowConfig",
    "RoleRouting",
    "PARCEL_INSURANCE_WORKFLOW",
    "WORKFLOW_REGISTRY",
    "register_workflow",
    "get_workflow_config",
    "parse_workflow",
    "load_workflow_file",
]
