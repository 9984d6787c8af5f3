"""
Configuration for the work engine.

Usage:
    from workq.config import EngineConfig, load_engine_config

    config = EngineConfig(max_queue_capacity=10, max_workers=2, deadline_millis=1000)

    # Defaults < workq.yaml < WORKQ_* env vars < overrides
    config = load_engine_config("workq.yaml", max_workers=8)
"""

from .schemas import EngineConfig, DEFAULT_WORKER_FLOOR
from .manager import EngineConfigManager, CONFIG_FILENAME
from .runtime import DEFAULTS, ENV_VARS, env_overrides, load_engine_config


__all__ = [
    "EngineConfig",
    "DEFAULT_WORKER_FLOOR",
    "EngineConfigManager",
    "CONFIG_FILENAME",
    "DEFAULTS",
    "ENV_VARS",
    "env_overrides",
    "load_engine_config",
]
