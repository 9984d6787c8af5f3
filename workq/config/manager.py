"""
YAML persistence for engine configuration.

The file holds the EngineConfig fields at top level:

    max_queue_capacity: 100
    max_workers: 4
    deadline_millis: 60000
"""

from pathlib import Path
from typing import Any, Dict
import yaml

from .schemas import EngineConfig


CONFIG_FILENAME = "workq.yaml"


class EngineConfigManager:
    """
    Loads and saves an EngineConfig YAML file.

    Usage:
        manager = EngineConfigManager(path)
        raw = manager.load_raw()   # dict, {} if the file is missing
        config = manager.load()    # EngineConfig
        manager.save(config)
    """

    def __init__(self, config_path: Path):
        config_path = Path(config_path).expanduser()
        if config_path.is_dir():
            config_path = config_path / CONFIG_FILENAME
        self.config_path = config_path

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()

    def load_raw(self) -> Dict[str, Any]:
        """Read the file without validation. Returns {} if it doesn't exist."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(
                f"{self.config_path}: expected a mapping, got {type(data).__name__}"
            )
        return data

    def load(self) -> EngineConfig:
        return EngineConfig.model_validate(self.load_raw())

    def save(self, config: EngineConfig) -> None:
        """
        Save config to disk.

        Creates the parent directory if needed.
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        data = config.model_dump(exclude_none=True)

        with open(self.config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
