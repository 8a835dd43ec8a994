from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel

from .constants import DEFAULT_CONFIG_FILE, DEFAULT_PRODUCT, TASKS_STORAGE_KEY


class PolicyflowConfig(BaseModel):
    """Top-level configuration model."""

    product: str = DEFAULT_PRODUCT
    database_url: Optional[str] = None
    storage_key: str = TASKS_STORAGE_KEY
    workflows_path: Optional[str] = None
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> PolicyflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to POLICYFLOW_CONFIG env
            variable or 'policyflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("POLICYFLOW_CONFIG", DEFAULT_CONFIG_FILE)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = PolicyflowConfig(**data)
    else:
        config = PolicyflowConfig()

    env_db_url = os.getenv("POLICYFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_product = os.getenv("POLICYFLOW_PRODUCT")
    if env_product:
        config.product = env_product
    return config
