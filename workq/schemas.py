#!/usr/bin/env python3
import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class WorkItem(Generic[T]):
    sequence_id: int
    payload: T
    admitted_at: float = field(default_factory=time.time, compare=False)


@dataclass(frozen=True)
class HandlerResult(Generic[R]):
    sequence_id: int
    value: R
    worker: str = ""
    duration_seconds: float = 0.0


class ItemPhase(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    FAILED = "failed"


@dataclass
class ItemStatus:
    sequence_id: int
    phase: ItemPhase
    admitted_at: float
    phase_entered_at: float
    worker: Optional[str] = None


@dataclass
class RunStats:
    run_id: str
    dequeued: int
    completed: int
    failed: int
    discarded: int
    workers_started: int
    max_in_flight: int
    avg_time_per_item: float
    elapsed_seconds: float
    timed_out: bool = False
