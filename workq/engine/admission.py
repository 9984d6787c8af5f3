import threading
from collections import deque
from typing import Callable, Deque, Generic, Iterable, List, Optional, TypeVar

from workq.errors import CapacityExceeded
from workq.schemas import WorkItem

T = TypeVar("T")


class AdmissionQueue(Generic[T]):
    """Capacity-bounded FIFO of pending items plus the in-flight counter.

    One condition variable guards the pending deque, the sequence counter
    and each batch's ``in_flight`` count, so "queue empty and nothing in
    flight" is always evaluated as a single atomic check. Batches are
    duck-typed: anything with ``stop_event`` and an ``in_flight`` int.

    Capacity rule: the number of pending items may never exceed
    ``max_capacity``, for single and batch admission alike.
    """

    def __init__(
        self,
        max_capacity: int,
        on_admitted: Optional[Callable[[List[WorkItem[T]]], None]] = None,
    ):
        if max_capacity <= 0:
            raise ValueError(f"max_capacity must be > 0, got {max_capacity}")
        self.max_capacity = max_capacity
        self.on_admitted = on_admitted

        self._cond = threading.Condition()
        self._pending: Deque[WorkItem[T]] = deque()
        self._next_id = 0
        self._waiting = 0

    def admit(self, payload: T, accept: Optional[Callable[[], None]] = None) -> WorkItem[T]:
        return self.admit_all([payload], accept=accept)[0]

    def admit_all(
        self,
        payloads: Iterable[T],
        accept: Optional[Callable[[], None]] = None,
    ) -> List[WorkItem[T]]:
        """Admit every payload or none of them.

        ``accept`` runs under the queue lock before anything is mutated and
        may raise to veto the admission.
        """
        payloads = list(payloads)
        with self._cond:
            if accept is not None:
                accept()
            if not payloads:
                return []
            pending = len(self._pending)
            if pending + len(payloads) > self.max_capacity:
                raise CapacityExceeded(len(payloads), pending, self.max_capacity)

            items = []
            for payload in payloads:
                items.append(WorkItem(sequence_id=self._next_id, payload=payload))
                self._next_id += 1
            self._pending.extend(items)

            if self.on_admitted is not None:
                self.on_admitted(items)

            self._cond.notify_all()
            return items

    def take(self, batch) -> Optional[WorkItem[T]]:
        """Block until an item is available.

        Returns None once the queue is quiescent (nothing pending, nothing in
        flight for this batch) or the batch is stopped. A returned item counts
        as in flight until ``task_done`` is called.

        Observing quiescence stops the batch under the lock, so every worker
        exits together and later admissions stay pending for the next run.
        """
        with self._cond:
            while True:
                if batch.stop_event.is_set():
                    return None
                if self._pending:
                    batch.in_flight += 1
                    return self._pending.popleft()
                if batch.in_flight == 0:
                    batch.stop_event.set()
                    self._cond.notify_all()
                    return None
                self._waiting += 1
                try:
                    self._cond.wait()
                finally:
                    self._waiting -= 1

    def task_done(self, batch):
        with self._cond:
            if batch.in_flight <= 0:
                raise RuntimeError("task_done() called more times than items were taken")
            batch.in_flight -= 1
            if batch.in_flight == 0 and not self._pending:
                self._cond.notify_all()

    def settle(self, batch, timeout: Optional[float]) -> bool:
        """Wait for quiescence or stop, then stop the batch.

        Returns False if ``timeout`` elapsed first. The stop signal is raised
        under the same lock that observed the final state, so no item can
        start for this run afterwards; later admissions stay pending.
        """
        with self._cond:
            settled = self._cond.wait_for(
                lambda: batch.stop_event.is_set() or self._is_quiescent(batch),
                timeout=timeout,
            )
            batch.stop_event.set()
            self._cond.notify_all()
            return settled

    def fail(self, batch, error, cause) -> bool:
        """Record a batch failure and stop it under the queue lock.

        No item can be taken for the batch once this returns. Returns False
        if a failure was already recorded.
        """
        with self._cond:
            first = batch.fail(error, cause)
            self._cond.notify_all()
            return first

    def discard_pending(self) -> List[WorkItem[T]]:
        with self._cond:
            discarded = list(self._pending)
            self._pending.clear()
            return discarded

    def _is_quiescent(self, batch) -> bool:
        return not self._pending and batch.in_flight == 0

    def is_quiescent(self, batch) -> bool:
        with self._cond:
            return self._is_quiescent(batch)

    def pending_count(self) -> int:
        with self._cond:
            return len(self._pending)

    def waiting_count(self) -> int:
        """Workers currently blocked in take()."""
        with self._cond:
            return self._waiting

    def next_sequence_id(self) -> int:
        with self._cond:
            return self._next_id
