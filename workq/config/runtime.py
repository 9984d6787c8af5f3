"""
Runtime configuration resolution.

Precedence (lowest to highest):
1. DEFAULTS below
2. YAML file (explicit path, or WORKQ_CONFIG)
3. Environment variables (a .env file in the working directory is loaded first)
4. Keyword overrides passed to load_engine_config()
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from .manager import EngineConfigManager
from .schemas import EngineConfig


DEFAULTS: Dict[str, Any] = {
    "max_queue_capacity": 100,
    "max_workers": 4,
    "deadline_millis": 60_000,
}

ENV_VARS = {
    "max_queue_capacity": "WORKQ_MAX_QUEUE_CAPACITY",
    "max_workers": "WORKQ_MAX_WORKERS",
    "deadline_millis": "WORKQ_DEADLINE_MS",
    "min_workers": "WORKQ_MIN_WORKERS",
}


def get_config_path() -> Optional[Path]:
    """Config file named by WORKQ_CONFIG, if any."""
    value = os.getenv("WORKQ_CONFIG", "").strip()
    return Path(value).expanduser() if value else None


def env_overrides() -> Dict[str, str]:
    """
    Read engine settings from the environment.

    Empty variables are ignored. Values stay strings; EngineConfig coerces
    and validates them.
    """
    load_dotenv(find_dotenv(usecwd=True))
    overrides = {}
    for field_name, var in ENV_VARS.items():
        value = os.getenv(var, "").strip()
        if value:
            overrides[field_name] = value
    return overrides


def load_engine_config(
    config_path: Optional[Path] = None,
    **overrides: Any
) -> EngineConfig:
    """
    Build an EngineConfig from defaults, file, environment and overrides.

    Args:
        config_path: YAML file (or directory containing workq.yaml)
        **overrides: Explicit field values; None values are ignored

    Raises:
        pydantic.ValidationError: if the merged values are invalid
    """
    data: Dict[str, Any] = dict(DEFAULTS)

    path = config_path if config_path is not None else get_config_path()
    if path is not None:
        data.update(EngineConfigManager(path).load_raw())

    data.update(env_overrides())
    data.update({k: v for k, v in overrides.items() if v is not None})

    return EngineConfig.model_validate(data)
