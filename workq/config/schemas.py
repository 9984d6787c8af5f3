"""
Configuration schema for the work engine.

EngineConfig is immutable once constructed; every engine keeps one for its
whole lifetime. Values may come from a YAML file, the environment or
explicit arguments (see runtime.py for precedence).
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


# Core pool size used by default when min_workers is not given
DEFAULT_WORKER_FLOOR = 3


class EngineConfig(BaseModel):
    """
    Limits that bound a single engine.

    - max_queue_capacity: items that may be pending (admitted, not yet started)
    - max_workers: concurrent handler invocations
    - deadline_millis: wall time of one run() call
    - min_workers: workers prestarted at the beginning of a run
    """
    max_queue_capacity: int = Field(
        ...,
        description="Maximum number of pending items"
    )
    max_workers: int = Field(
        ...,
        description="Maximum number of concurrent handler invocations"
    )
    deadline_millis: int = Field(
        ...,
        description="Wall-clock budget of a single run, in milliseconds"
    )
    min_workers: Optional[int] = Field(
        None,
        description="Workers prestarted per run (default: min(3, max_workers))"
    )

    @field_validator('max_queue_capacity', 'deadline_millis')
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0, got {v}")
        return v

    @field_validator('max_workers')
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v

    @model_validator(mode='after')
    def validate_worker_bounds(self) -> "EngineConfig":
        if self.min_workers is not None:
            if self.min_workers < 1:
                raise ValueError(f"min_workers must be >= 1, got {self.min_workers}")
            if self.min_workers > self.max_workers:
                raise ValueError(
                    f"min_workers ({self.min_workers}) cannot exceed "
                    f"max_workers ({self.max_workers})"
                )
        return self

    @property
    def worker_floor(self) -> int:
        if self.min_workers is not None:
            return self.min_workers
        return min(DEFAULT_WORKER_FLOOR, self.max_workers)

    @property
    def deadline_seconds(self) -> float:
        return self.deadline_millis / 1000.0

    model_config = {
        "frozen": True,
        "validate_assignment": True
    }
