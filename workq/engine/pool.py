import time
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional

from workq.schemas import ItemPhase, ItemStatus, WorkItem

from . import handlers, tracking
from .admission import AdmissionQueue
from .batch import Batch


class WorkerPool:
    def __init__(
        self,
        handler: Callable,
        admission: AdmissionQueue,
        max_workers: int,
        min_workers: int = 1,
        logger=None,
    ):
        if logger is None:
            raise ValueError("WorkerPool requires a logger instance")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.handler = handler
        self.admission = admission
        self.max_workers = max_workers
        self.min_workers = max(1, min(min_workers, max_workers))
        self.logger = logger

        self.tracking_lock = threading.Lock()
        self.active_items: Dict[int, ItemStatus] = {}

        self.workers_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._batch: Optional[Batch] = None

    def start(self, batch: Batch):
        with self.workers_lock:
            if self._executor is not None:
                raise RuntimeError("WorkerPool is already running a batch")

            self._batch = batch
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix=f"workq-{batch.run_id}"
            )

            pending = self.admission.pending_count()
            initial = min(self.max_workers, max(self.min_workers, pending))
            for _ in range(initial):
                self._spawn_worker_locked(batch)

        self.logger.debug(
            f"Started {initial} workers for {pending} pending items",
            run_id=batch.run_id,
            pending=pending
        )

    def scale_up(self):
        """Add workers, up to max_workers, when pending items outnumber idle workers."""
        with self.workers_lock:
            batch = self._batch
            if self._executor is None or batch is None or batch.stopped:
                return

            shortfall = self.admission.pending_count() - self.admission.waiting_count()
            room = self.max_workers - batch.live_workers
            for _ in range(max(0, min(shortfall, room))):
                self._spawn_worker_locked(batch)

    def shutdown(self):
        with self.workers_lock:
            executor = self._executor
            self._executor = None
            self._batch = None

        if executor is not None:
            # In-flight handlers finish in the background; queued loops are dropped
            executor.shutdown(wait=False, cancel_futures=True)

    def _spawn_worker_locked(self, batch: Batch):
        batch.live_workers += 1
        batch.stats.record_worker_started()
        self._executor.submit(self._worker_loop, batch)

    def _worker_loop(self, batch: Batch):
        worker_id = threading.current_thread().name
        self.logger.debug(f"Worker {worker_id} started", run_id=batch.run_id, worker=worker_id)

        try:
            while True:
                item = self.admission.take(batch)
                if item is None:
                    reason = "stopped" if batch.stopped else "all done"
                    self.logger.debug(
                        f"Worker {worker_id} exiting ({reason})",
                        run_id=batch.run_id,
                        worker=worker_id
                    )
                    break

                try:
                    self._execute(item, batch, worker_id)
                except Exception as e:
                    handlers.handle_worker_crash(self, batch, item, e, worker_id)
                finally:
                    self.admission.task_done(batch)
        finally:
            with self.workers_lock:
                batch.live_workers -= 1

    def _execute(self, item: WorkItem, batch: Batch, worker_id: str):
        tracking.update_item_phase(self, item.sequence_id, ItemPhase.RUNNING, worker=worker_id)
        batch.stats.record_start()

        self.logger.debug(
            f"Worker {worker_id} executing item {item.sequence_id}",
            run_id=batch.run_id,
            sequence_id=item.sequence_id,
            worker=worker_id
        )

        start_time = time.time()
        try:
            value = self.handler(item.payload, batch.handle)
        except Exception as e:
            handlers.handle_failure(self, batch, item, e, worker_id, time.time() - start_time)
            return

        handlers.handle_success(self, batch, item, value, worker_id, time.time() - start_time)

    def get_active_items(self) -> Dict[int, ItemStatus]:
        return tracking.get_active_items(self)
