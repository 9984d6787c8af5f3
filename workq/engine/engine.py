#!/usr/bin/env python3
import itertools
import threading
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from workq.config import EngineConfig
from workq.errors import (
    CapacityExceeded,
    EngineBusy,
    ExecutionTimedOut,
    ResultsIncomplete,
)
from workq.logger import create_logger
from workq.schemas import ItemPhase, ItemStatus, RunStats, WorkItem

from . import tracking
from .admission import AdmissionQueue
from .batch import Batch
from .pool import WorkerPool

T = TypeVar("T")
R = TypeVar("R")


class EngineHandle(Generic[T]):
    """The part of the engine a handler is allowed to see.

    Handlers receive one of these as their second argument and may admit
    more work through it. Once the run stops (finished, failed or timed
    out) admissions raise BatchClosed.
    """

    def __init__(self, engine: "WorkEngine", batch: Batch):
        self._engine = engine
        self._batch = batch

    @property
    def run_id(self) -> str:
        return self._batch.run_id

    @property
    def stopping(self) -> bool:
        """True once the run has been told to stop; long handlers may check it."""
        return self._batch.stopped

    def submit(self, item: T) -> int:
        return self._engine._admit([item], self._batch)[0]

    def submit_all(self, items: Iterable[T]) -> List[int]:
        return self._engine._admit(list(items), self._batch)


class WorkEngine(Generic[T, R]):
    """
    Bounded, order-preserving work engine.

    Items are admitted with submit()/submit_all(), then run() processes them
    on up to max_workers threads and returns handler results in admission
    order. Handlers get an EngineHandle and may admit further items while
    the run is active; run() waits for those too.

    Usage:
        def handler(path, engine):
            ...
            return size

        engine = WorkEngine(handler, max_queue_capacity=100, max_workers=4,
                            deadline_millis=30_000)
        engine.submit_all(paths)
        sizes = engine.run()

    run() raises ExecutionTimedOut if the batch does not drain within
    deadline_millis, and HandlerFailed (chained to the original exception)
    as soon as any handler raises. Sequence ids keep increasing across runs.
    """

    def __init__(
        self,
        handler: Callable[[T, EngineHandle], R],
        max_queue_capacity: int,
        max_workers: int,
        deadline_millis: int,
        min_workers: Optional[int] = None,
        logger=None,
    ):
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")

        self.config = EngineConfig(
            max_queue_capacity=max_queue_capacity,
            max_workers=max_workers,
            deadline_millis=deadline_millis,
            min_workers=min_workers,
        )
        self.handler = handler
        self.logger = logger if logger is not None else create_logger("engine")

        self.admission: AdmissionQueue[T] = AdmissionQueue(
            self.config.max_queue_capacity,
            on_admitted=self._on_admitted,
        )
        self.pool = WorkerPool(
            handler=handler,
            admission=self.admission,
            max_workers=self.config.max_workers,
            min_workers=self.config.worker_floor,
            logger=self.logger,
        )

        self._run_lock = threading.Lock()
        self._run_counter = itertools.count(1)
        self.last_run_stats: Optional[RunStats] = None

    @classmethod
    def from_config(
        cls,
        handler: Callable[[T, EngineHandle], R],
        config: EngineConfig,
        logger=None,
    ) -> "WorkEngine[T, R]":
        return cls(
            handler,
            max_queue_capacity=config.max_queue_capacity,
            max_workers=config.max_workers,
            deadline_millis=config.deadline_millis,
            min_workers=config.min_workers,
            logger=logger,
        )

    @property
    def pending_count(self) -> int:
        return self.admission.pending_count()

    def submit(self, item: T) -> int:
        """Admit one item. Returns its sequence id; raises CapacityExceeded when full."""
        return self._admit([item], None)[0]

    def submit_all(self, items: Iterable[T]) -> List[int]:
        """Admit all items atomically, or none of them if capacity would be exceeded."""
        return self._admit(list(items), None)

    def get_active_items(self) -> Dict[int, ItemStatus]:
        return self.pool.get_active_items()

    def run(self) -> List[R]:
        if not self._run_lock.acquire(blocking=False):
            raise EngineBusy()
        try:
            return self._run_batch()
        finally:
            self._run_lock.release()

    def _admit(self, payloads: List[T], batch: Optional[Batch]) -> List[int]:
        accept = batch.check_open if batch is not None else None
        try:
            items = self.admission.admit_all(payloads, accept=accept)
        except CapacityExceeded as e:
            self.logger.warning(
                f"Admission rejected: {e}",
                run_id=batch.run_id if batch is not None else None,
                pending=e.pending
            )
            raise

        if items:
            self.pool.scale_up()
        return [item.sequence_id for item in items]

    def _on_admitted(self, items: List[WorkItem[T]]):
        tracking.track_queued(self.pool, items)

    def _run_batch(self) -> List[R]:
        batch = Batch(f"run-{next(self._run_counter)}")
        batch.handle = EngineHandle(self, batch)

        pending = self.admission.pending_count()
        self.logger.info(
            f"Run {batch.run_id} started with {pending} pending items",
            run_id=batch.run_id,
            pending=pending
        )

        timed_out = False
        self.pool.start(batch)
        try:
            settled = self.admission.settle(batch, timeout=self.config.deadline_seconds)

            if batch.failure is not None:
                self._abort(batch)
                raise batch.failure from batch.failure_cause

            if not settled:
                timed_out = True
                self._abort(batch)
                stats = batch.stats.get_stats()
                self.logger.warning(
                    f"Run {batch.run_id} exceeded deadline of {self.config.deadline_millis}ms",
                    run_id=batch.run_id,
                    in_flight=stats['in_flight']
                )
                raise ExecutionTimedOut(
                    self.config.deadline_millis,
                    completed=stats['completed'],
                    dequeued=stats['dequeued'],
                )

            results = batch.collector.results()
            expected = batch.stats.get_stats()['dequeued']
            if len(results) != expected:
                self.logger.error(
                    f"CRITICAL: {expected - len(results)} items never produced a result",
                    run_id=batch.run_id
                )
                raise ResultsIncomplete(expected, len(results))

            self.logger.info(
                f"Run {batch.run_id} finished: {len(results)} results",
                run_id=batch.run_id
            )
            return [r.value for r in results]
        finally:
            self.pool.shutdown()
            self.last_run_stats = batch.stats.get_run_stats(timed_out=timed_out)

    def _abort(self, batch: Batch):
        discarded = self.admission.discard_pending()
        batch.stats.record_discarded(len(discarded))

        # Handlers still running belong to this run; their results are dropped
        abandoned_ids = [
            seq_id for seq_id, status in self.pool.get_active_items().items()
            if status.phase in (ItemPhase.RUNNING, ItemPhase.FAILED)
        ]
        tracking.untrack(self.pool, [item.sequence_id for item in discarded] + abandoned_ids)

        if discarded:
            self.logger.warning(
                f"Run {batch.run_id} aborted, discarded {len(discarded)} pending items",
                run_id=batch.run_id,
                pending=len(discarded)
            )
