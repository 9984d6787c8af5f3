import threading
from typing import Optional

from workq.errors import BatchClosed, WorkQueueError
from .collector import ResultCollector
from .stats import RunStatsTracker


class Batch:
    """State of a single run() call.

    A fresh Batch (collector, stats, stop signal) is created per run so a
    timed-out run's late finishers can never leak into the next one.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self.stop_event = threading.Event()
        self.collector = ResultCollector()
        self.stats = RunStatsTracker(run_id)
        self.handle = None

        # Guarded by the AdmissionQueue lock
        self.in_flight = 0
        # Guarded by WorkerPool.workers_lock
        self.live_workers = 0

        self._failure_lock = threading.Lock()
        self.failure: Optional[WorkQueueError] = None
        self.failure_cause: Optional[BaseException] = None

    def fail(self, error: WorkQueueError, cause: BaseException) -> bool:
        """Record the first failure and stop the run. Returns False if one was already recorded.

        Called through AdmissionQueue.fail so the stop lands under the queue lock.
        """
        with self._failure_lock:
            if self.failure is not None:
                return False
            self.failure = error
            self.failure_cause = cause
        self.stop_event.set()
        return True

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()

    def check_open(self):
        if self.stop_event.is_set():
            raise BatchClosed(self.run_id)
